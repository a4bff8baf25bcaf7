from lookup_gateway.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("lookup_gateway.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
