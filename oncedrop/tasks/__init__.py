"""
Celery Tasks

Background tasks are imported by name from celery_app.py.
"""
