# backend/wsgi.py
from bizdash import create_app

app = create_app()
