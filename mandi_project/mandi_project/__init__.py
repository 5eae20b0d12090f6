# Celery instance is defined in mandi_project/celery.py
# celery_app becomes the singleton task queue app for the whole project
from .celery import celery_app

# 'from mandi_project import *', only exports celery_app
__all__ = ("celery_app",)

""" Workers run with "celery -A mandi_project worker -l info",
    which imports this module and picks up celery_app. """
