"""HTTP views for the product catalog.

Anyone authenticated can browse the catalog; writes are admin-only.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.accounts.domain import Role
from apps.accounts.permissions import HasRole
from apps.common.validation import parse

from .repository import ProductRepository
from .schemas import ProductCreateDTO, ProductListQuery, ProductReadDTO, ProductUpdateDTO

logger = logging.getLogger(__name__)


def _body(obj) -> dict:
    return ProductReadDTO.model_validate(obj).model_dump(mode="json")


class ProductsCollectionView(APIView):
    permission_classes = [HasRole]
    required_roles = {"POST": (Role.ADMIN,)}
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "catalog"

    def get(self, request):
        query = parse(ProductListQuery, request.query_params.dict())
        page = ProductRepository().page(
            query.page,
            name=query.name,
            min_price=query.min_price,
            max_price=query.max_price,
            available=query.available,
        )
        return Response({"data": [_body(p) for p in page.data], "meta": page.meta()})

    def post(self, request):
        dto = parse(ProductCreateDTO, request.data)
        obj = ProductRepository().create(**dto.model_dump())
        logger.info("product created", extra={"product_id": obj.id})
        return Response(_body(obj), status=status.HTTP_201_CREATED)


class ProductDetailView(APIView):
    permission_classes = [HasRole]
    required_roles = {"PATCH": (Role.ADMIN,), "DELETE": (Role.ADMIN,)}
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "catalog"

    def get(self, request, pid: int):
        return Response(_body(ProductRepository().get(pid)))

    def patch(self, request, pid: int):
        dto = parse(ProductUpdateDTO, request.data)
        obj = ProductRepository().update(pid, dto.model_dump(exclude_unset=True))
        return Response(_body(obj))

    def delete(self, request, pid: int):
        obj = ProductRepository().delete(pid)
        logger.info("product deleted", extra={"product_id": pid})
        return Response(_body(obj))
