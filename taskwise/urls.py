"""
URL configuration for taskwise project.

JSON API lives under /api/; the admin site is kept for support staff.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "TaskWise Admin"
admin.site.site_title = "TaskWise"
admin.site.index_title = "Management"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('accounts.urls')),
    path('api/', include('tasks.urls')),
]
