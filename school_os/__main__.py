import uvicorn

from school_os.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "school_os.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )
