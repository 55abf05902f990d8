from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.schemas import ErrorResponseSerializer
from apps.common import get_logger

from .commands import AddItemCommand, QuantityUpdateCommand
from .container import build_cart_context, build_cart_service
from .serializers import (
    CartItemAddSerializer,
    CartItemQuantitySerializer,
    CartReadSerializer,
    MergeResultSerializer,
)

logger = get_logger(__name__).bind(component="carts", layer="view")

LINE_ID_PARAMETER = OpenApiParameter("line_id", str, OpenApiParameter.PATH)
STORE_UNAVAILABLE = OpenApiResponse(
    response=ErrorResponseSerializer,
    description="PERSISTENCE_ERROR or MERGE_INCOMPLETE; safe to retry",
)


class CartView(APIView):
    permission_classes = [AllowAny]
    service = build_cart_service()
    log = logger.bind(view="CartView")

    @extend_schema(
        summary="Get cart",
        description=(
            "Returns the caller's cart. Anonymous callers get the cart kept in their session; "
            "authenticated callers get their account cart, with any session lines folded in first. "
            "If that fold could not complete, merge_pending is true and the session lines are kept."
        ),
        responses={200: CartReadSerializer, 503: STORE_UNAVAILABLE},
    )
    def get(self, request):
        cart = self.service.get_cart(build_cart_context(request))
        self.log.debug("Cart served", owner_id=cart.owner_id, lines=len(cart.lines))
        return Response(CartReadSerializer(cart).data)

    @extend_schema(
        summary="Clear cart",
        responses={200: CartReadSerializer, 503: STORE_UNAVAILABLE},
    )
    def delete(self, request):
        cart = self.service.clear_cart(build_cart_context(request))
        return Response(CartReadSerializer(cart).data)


class CartItemListView(APIView):
    permission_classes = [AllowAny]
    service = build_cart_service()
    log = logger.bind(view="CartItemListView")

    @extend_schema(
        summary="Add item to cart",
        description=(
            "Adds a catalog product (productId) or an auction lot (lotId). Adding an item that is "
            "already in the cart increases its quantity; the price stays the one captured when the "
            "line was first created."
        ),
        request=CartItemAddSerializer,
        responses={
            201: CartReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            503: STORE_UNAVAILABLE,
        },
    )
    def post(self, request):
        command = AddItemCommand.from_raw(request.data)
        cart = self.service.add_item(
            build_cart_context(request), command.item, command.quantity
        )
        self.log.info(
            "Item added via API",
            owner_id=cart.owner_id,
            item=command.item,
            quantity=command.quantity,
        )
        return Response(CartReadSerializer(cart).data, status=status.HTTP_201_CREATED)


class CartItemDetailView(APIView):
    permission_classes = [AllowAny]
    service = build_cart_service()
    log = logger.bind(view="CartItemDetailView")

    @extend_schema(
        summary="Change line quantity",
        description="Sets the quantity of a cart line. Zero or a negative quantity removes the line.",
        parameters=[LINE_ID_PARAMETER],
        request=CartItemQuantitySerializer,
        responses={
            200: CartReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            503: STORE_UNAVAILABLE,
        },
    )
    def patch(self, request, line_id: str):
        command = QuantityUpdateCommand.from_raw(line_id, request.data)
        cart = self.service.update_quantity(
            build_cart_context(request), command.line_id, command.quantity
        )
        return Response(CartReadSerializer(cart).data)

    @extend_schema(
        summary="Remove line",
        description="Removes a cart line. Removing a line that is already gone is not an error.",
        parameters=[LINE_ID_PARAMETER],
        responses={200: CartReadSerializer, 503: STORE_UNAVAILABLE},
    )
    def delete(self, request, line_id: str):
        cart = self.service.remove_item(build_cart_context(request), line_id)
        return Response(CartReadSerializer(cart).data)


class CartMergeView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_cart_service()
    log = logger.bind(view="CartMergeView")

    @extend_schema(
        summary="Merge session cart into account cart",
        description=(
            "Folds the lines kept in this session into the authenticated user's cart. Runs "
            "automatically on login; call it to retry after a MERGE_INCOMPLETE response. Calling it "
            "again once merged changes nothing."
        ),
        request=None,
        responses={
            200: MergeResultSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
            503: STORE_UNAVAILABLE,
        },
    )
    def post(self, request):
        ctx = build_cart_context(request)
        result = self.service.merge_on_authentication(ctx, request.user.pk)
        self.log.info(
            "Merge requested via API",
            owner_id=result.owner_id,
            merged_lines=result.merged_lines,
        )
        return Response(MergeResultSerializer(result).data)
