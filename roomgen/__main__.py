import uvicorn

from roomgen.core.config import settings


def main() -> None:
    uvicorn.run("roomgen.main:app", host=settings.app_host, port=settings.app_port, log_config=None)


if __name__ == "__main__":
    main()
