"""Run the Smart Turjman API."""

import os

import uvicorn


def main():
    uvicorn.run(
        "turjman.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=os.environ.get("ENVIRONMENT", "development") != "production",
    )


if __name__ == "__main__":
    main()
