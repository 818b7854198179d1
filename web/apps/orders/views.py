"""HTTP views for the orders app.

This module contains DRF API views for carts and orders. Views are kept
intentionally small: they validate requests (via Pydantic), build the
acting ``Principal``, delegate to the domain service and return an HTTP
response. Domain errors propagate to the gateway exception handler,
which maps them to 404/403/400/409.

The views obtain a configured ``OrderService`` from
``get_order_service()``, so tests can swap implementations without
changing view logic.

Idempotency: when an ``Idempotency-Key`` header is provided, direct order
creation and checkout are processed once per key. The first request
stores its response (success or domain error); retries with the same
payload replay it with ``Idempotent-Replay: true``. Reusing a key with a
different payload returns 409 ``IDEMPOTENCY_CONFLICT``, and a retry that
arrives while the first request is still running returns 409
``IDEMPOTENCY_IN_PROGRESS``.
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.accounts.domain import Principal, Role
from apps.accounts.permissions import HasRole
from apps.common.errors import DomainError
from apps.common.validation import parse
from gateway.exceptions import domain_error_response

from . import providers
from .domain import CartDeleted, OrderQuery
from .idempotency import finalize, get_or_create_idempotent
from .schemas import CreateOrderDTO, FindAllOrdersQuery, OrderReadDTO, RemoveFromCartQuery, UpdateOrderDTO

ANY_ROLE = (Role.ADMIN, Role.CLIENT)
CLIENT_ONLY = (Role.CLIENT,)


def _order_body(order) -> dict:
    return OrderReadDTO.model_validate(order).model_dump(mode="json")


def _idempotent(request, scope: str, payload, action) -> Response:
    """Run ``action`` at most once per ``Idempotency-Key``.

    Args:
        request: DRF request, possibly carrying the header.
        scope: Operation name the key is bound to.
        payload: Request payload used to detect key reuse.
        action: Callable returning ``(status_code, body, order_id)``.

    Returns:
        Response: The fresh or replayed response.
    """
    idem_key = request.headers.get("Idempotency-Key")
    if not idem_key:
        status_code, body, _ = action()
        return Response(body, status=status_code)

    try:
        existing, rec = get_or_create_idempotent(request.user.pk, idem_key, scope, payload)
    except ValueError:
        return Response({"detail": "IDEMPOTENCY_CONFLICT"}, status=status.HTTP_409_CONFLICT)
    if existing:
        if not rec.response_status:
            return Response({"detail": "IDEMPOTENCY_IN_PROGRESS"}, status=status.HTTP_409_CONFLICT)
        resp = Response(rec.response_body, status=rec.response_status)
        resp["Idempotent-Replay"] = "true"
        return resp

    try:
        status_code, body, order_id = action()
    except DomainError as e:
        error = domain_error_response(e)
        finalize(rec, error.status_code, error.data)
        return error
    except Exception:
        # Unexpected failure: forget the key so the client can retry
        rec.delete()
        raise

    finalize(rec, status_code, body, order_id=order_id)
    return Response(body, status=status_code)


class OrdersCollectionView(APIView):
    """List orders or place one directly, without a cart.

    ``GET`` accepts ``page``, ``status``, ``startDate`` and ``endDate``
    and returns ``{data, meta}``. ``POST`` takes ``{items: [{productId,
    quantity}]}`` and supports the ``Idempotency-Key`` header.
    """

    permission_classes = [HasRole]
    required_roles = {"GET": ANY_ROLE, "POST": CLIENT_ONLY}
    throttle_classes = [ScopedRateThrottle]

    def get_throttles(self):
        # DRF evaluates throttles in initial(), before get/post
        self.throttle_scope = "orders_list" if self.request.method == "GET" else "orders_create"
        return [throttle() for throttle in self.throttle_classes]

    def get(self, request):
        q = parse(FindAllOrdersQuery, request.query_params.dict())
        page = providers.get_order_service().find_all(
            Principal.from_user(request.user),
            OrderQuery(page=q.page, status=q.status, start_date=q.start_date, end_date=q.end_date),
        )
        return Response({"data": [_order_body(o) for o in page.data], "meta": page.meta()})

    def post(self, request):
        dto = parse(CreateOrderDTO, request.data)
        principal = Principal.from_user(request.user)

        def place():
            order = providers.get_order_service().create(dto.lines(), principal)
            return status.HTTP_201_CREATED, _order_body(order), order.id

        return _idempotent(request, "orders.create", request.data, place)


class CartView(APIView):
    permission_classes = [HasRole]
    required_roles = {"GET": CLIENT_ONLY, "POST": CLIENT_ONLY}
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "cart"

    def get(self, request):
        cart = providers.get_order_service().get_cart(Principal.from_user(request.user))
        return Response(_order_body(cart))

    def post(self, request):
        dto = parse(CreateOrderDTO, request.data)
        cart = providers.get_order_service().add_to_cart(dto.lines(), Principal.from_user(request.user))
        return Response(_order_body(cart), status=status.HTTP_200_OK)


class CheckoutView(APIView):
    permission_classes = [HasRole]
    required_roles = {"POST": CLIENT_ONLY}
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_create"

    def post(self, request):
        principal = Principal.from_user(request.user)

        def checkout():
            order = providers.get_order_service().checkout(principal)
            return status.HTTP_200_OK, _order_body(order), order.id

        return _idempotent(request, "orders.checkout", {}, checkout)


class CartItemView(APIView):
    permission_classes = [HasRole]
    required_roles = {"DELETE": CLIENT_ONLY}
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "cart"

    def delete(self, request, product_id: int):
        q = parse(RemoveFromCartQuery, request.query_params.dict())
        result = providers.get_order_service().remove_from_cart(
            product_id, Principal.from_user(request.user), q.quantity
        )
        if isinstance(result, CartDeleted):
            return Response({"message": result.message, "cart": None}, status=status.HTTP_200_OK)
        return Response(_order_body(result), status=status.HTTP_200_OK)


class OrderDetailView(APIView):
    permission_classes = [HasRole]
    required_roles = {"GET": ANY_ROLE, "PATCH": ANY_ROLE, "DELETE": (Role.ADMIN,)}
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, oid: int):
        order = providers.get_order_service().find_one(oid, Principal.from_user(request.user))
        return Response(_order_body(order))

    def patch(self, request, oid: int):
        dto = parse(UpdateOrderDTO, request.data)
        order = providers.get_order_service().update(oid, dto.status, Principal.from_user(request.user))
        return Response(_order_body(order))

    def delete(self, request, oid: int):
        order = providers.get_order_service().remove(oid, Principal.from_user(request.user))
        return Response(_order_body(order))
