"""WSGI entry point for the Sprout project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'sprout.settings')

application = get_wsgi_application()
