# src/hr_admin_bff/__main__.py

import uvicorn

from .config import settings


def main():
    uvicorn.run(
        "hr_admin_bff.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
