"""Run the app with uvicorn: ``python -m reunion``."""
import uvicorn

from reunion.core.config import settings


def main():
    uvicorn.run("reunion.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
