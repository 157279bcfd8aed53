"""
URL configuration for the pricing configuration API.
"""

from django.urls import path

from . import views

app_name = "configuration"

urlpatterns = [
    path("price-fixes/", views.PriceFixListCreateAPIView.as_view(), name="price_fix_list"),
    path("price-fixes/<int:pk>/", views.PriceFixDetailAPIView.as_view(), name="price_fix_detail"),
    path(
        "product-catalogs/",
        views.ProductCatalogListCreateAPIView.as_view(),
        name="product_catalog_list",
    ),
    path(
        "product-catalogs/<int:pk>/",
        views.ProductCatalogDetailAPIView.as_view(),
        name="product_catalog_detail",
    ),
    path(
        "service-configs/",
        views.ServiceConfigListCreateAPIView.as_view(),
        name="service_config_list",
    ),
    path(
        "service-configs/<int:pk>/",
        views.ServiceConfigDetailAPIView.as_view(),
        name="service_config_detail",
    ),
]
