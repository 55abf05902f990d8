from django.db import OperationalError
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, Throttled, ValidationError
from rest_framework.test import APIRequestFactory

from apps.api.exceptions import ApplicationError, global_exception_handler
from apps.carts.errors import MergeIncomplete, PersistenceError

factory = APIRequestFactory()


class DummyView:
    pass


class OutOfStock(ApplicationError):
    default_code = "CONFLICT"
    default_message = "Item is out of stock"
    default_status = status.HTTP_409_CONFLICT


def _context(request):
    return {"request": request, "view": DummyView()}


def test_application_error_returns_structured_response():
    request = factory.post("/api/cart/items/")
    exc = ApplicationError(
        "ITEM_NOT_FOUND",
        "Item no longer exists",
        details={"type": "lot", "id": 4},
        extra={"retryable": False},
    )
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert payload["code"] == "ITEM_NOT_FOUND"
    assert payload["message"] == "Item no longer exists"
    assert payload["details"] == {"type": "lot", "id": 4}
    assert payload["extra"] == {"retryable": False}


def test_application_error_subclass_uses_class_defaults():
    request = factory.post("/api/cart/items/")
    response = global_exception_handler(OutOfStock(), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_409_CONFLICT
    assert payload["code"] == "CONFLICT"
    assert payload["message"] == "Item is out of stock"


def test_validation_error_preserves_details():
    request = factory.post("/api/cart/items/", data={})
    exc = ValidationError({"field": ["This field is required."]})
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "Validation failed"
    assert payload["details"] == {"field": ["This field is required."]}


def test_not_authenticated_maps_to_unauthorized():
    request = factory.post("/api/cart/merge/")
    response = global_exception_handler(NotAuthenticated(), _context(request))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.data["error"]["code"] == "UNAUTHORIZED"


def test_unhandled_exception_returns_generic_message():
    request = factory.get("/api/cart/")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["code"] == "SERVER_ERROR"
    assert payload["message"] == "Something went wrong"
    assert "details" not in payload


def test_retryable_cart_errors_send_retry_after():
    request = factory.post("/api/cart/items/")
    for exc in (PersistenceError(), MergeIncomplete(pending_lines=2)):
        response = global_exception_handler(exc, _context(request))
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response["Retry-After"] == "1"
        assert response.data["error"]["extra"] == {"retryable": True}


def test_plain_application_error_has_no_retry_after():
    request = factory.post("/api/cart/items/")
    response = global_exception_handler(OutOfStock(), _context(request))
    assert not response.has_header("Retry-After")


def test_database_error_maps_to_service_unavailable():
    request = factory.get("/api/cart/")
    response = global_exception_handler(OperationalError("gone away"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert payload["code"] == "SERVICE_UNAVAILABLE"
    assert payload["extra"] == {"retryable": True}
    assert "gone away" not in payload["message"]


def test_throttled_reports_wait():
    request = factory.get("/api/cart/")
    response = global_exception_handler(Throttled(wait=12), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert payload["details"] == {"retryAfter": 12}
    assert payload["hint"] == "Wait before retrying this request."
