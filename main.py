import uvicorn

from config.db import init_db


def main():
    init_db()
    # one process: workers share a single browser session
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, workers=1)


if __name__ == "__main__":
    main()
