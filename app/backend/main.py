import os
from dotenv import load_dotenv
import logging
import uvicorn


def main():
    load_dotenv()
    host = os.getenv("REHAB_HOST", "0.0.0.0")
    port = int(os.getenv("REHAB_PORT", "8000"))
    uvicorn.run("app.backend.api.app:app", host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    try:
        main()
    except KeyboardInterrupt:
        print("Exit")
