"""
WSGI config for KeyManagementService project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "KeyManagementService.settings.prod")

application = get_wsgi_application()
