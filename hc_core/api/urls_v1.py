# hc_core/api/urls_v1.py
from django.urls import include, path

# Schema generation sees only the versioned mount; the /api/ alias would duplicate every operation.
urlpatterns = [
    path("api/v1/", include("hc_core.api.urls")),
]
