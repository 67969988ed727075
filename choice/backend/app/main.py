# app/main.py
# Run: uvicorn app.main:app --reload  (from choice/backend)
from .entrypoints.fastapi_app import create_app

app = create_app()
