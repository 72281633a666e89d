# wsgi.py
from padelhub import create_app

app = create_app()
