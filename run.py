import uvicorn
from src.codeprep.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "src.codeprep.main:app",
        host="localhost",
        port=settings.SERVER_PORT,
        reload=True,
        log_level="info",
    )
