"""
main.py
-------
ASGI entry point. Settings come from the environment / .env file.

Run with:
    uvicorn main:app --reload              # development
    uvicorn main:app --workers 1           # sessions are per process
"""

from docportal.main import create_application

app = create_application()
