from django.urls import path

from .views import CartItemDetailView, CartItemListView, CartMergeView, CartView

urlpatterns = [
    path("", CartView.as_view(), name="api-cart"),
    path("items/", CartItemListView.as_view(), name="api-cart-items"),
    path("items/<str:line_id>/", CartItemDetailView.as_view(), name="api-cart-item-detail"),
    path("merge/", CartMergeView.as_view(), name="api-cart-merge"),
]
