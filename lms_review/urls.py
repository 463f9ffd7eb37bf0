"""URL configuration for lms_review project."""
from django.contrib import admin
from django.urls import path

urlpatterns = [
    # Administrative task management (create, inspect, guarded delete)
    path("admin/", admin.site.urls),
]
