# Startas med: python -m src.server
import uvicorn

from src.server.settings.config import get_settings


def main():
    settings = get_settings()
    # Viktigt: via "src." så att importerna stämmer
    uvicorn.run("src.server.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    main()
