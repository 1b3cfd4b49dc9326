# backend/wsgi.py
from cosy import create_app

app = create_app()
