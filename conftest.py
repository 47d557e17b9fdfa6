import os

import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'azstore.settings')
django.setup()
