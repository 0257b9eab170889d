# backend/wsgi.py
# FLASK_APP entry point: python -m flask --app wsgi.py <command>
from stockbook import create_app

app = create_app()
