from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from apps.api.schemas import ErrorResponseSerializer
from apps.common import get_logger

from .container import build_session_service
from .serializers import (
    DetailResponseSerializer,
    LogoutRequestSerializer,
    MeResponseSerializer,
    ShopperTokenObtainPairSerializer,
)

logger = get_logger(__name__).bind(component="auth", layer="view")


@extend_schema(
    tags=["Auth"],
    summary="Login (JWT obtain pair)",
    description="Issues a token pair. Any cart kept in the caller's session is folded into their account cart.",
)
class LoginView(TokenObtainPairView):
    permission_classes = [AllowAny]
    serializer_class = ShopperTokenObtainPairSerializer
    service = build_session_service()
    log = logger.bind(view="LoginView")

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc
        self.service.signed_in(request, serializer.user)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


@extend_schema(tags=["Auth"], summary="Refresh JWT")
class RefreshView(TokenRefreshView):
    permission_classes = [AllowAny]


@extend_schema(
    tags=["Auth"], summary="Get current user", responses={200: MeResponseSerializer}
)
class MeView(APIView):
    permission_classes = [IsAuthenticated]
    log = logger.bind(view="MeView")

    def get(self, request):
        user = request.user
        self.log.debug("Returning current user profile", user_id=user.id)
        return Response(MeResponseSerializer(user).data)


@extend_schema(tags=["Auth"])
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_session_service()
    log = logger.bind(view="LogoutView")

    @extend_schema(
        summary="Logout (blacklist refresh)",
        description="Blacklists the refresh token. The account cart is kept for the next sign-in.",
        request=LogoutRequestSerializer,
        responses={
            200: DetailResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        data = request.data if hasattr(request.data, "get") else {}
        self.service.logout(request, data.get("refresh"))
        return Response({"detail": "Logged out"}, status=status.HTTP_200_OK)
