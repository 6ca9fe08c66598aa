from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from mongoroute.core.errors import UnknownModelError
from mongoroute.core.model import ModelDescriptor, ModelRegistry
from mongoroute.handlers.routes import ModelRouteHandlers


def build_model_router(registry: ModelRegistry, handlers: ModelRouteHandlers) -> APIRouter:
    router = APIRouter()

    def descriptor_for(model_code: str) -> ModelDescriptor:
        try:
            return registry.get(model_code)
        except UnknownModelError:
            raise HTTPException(status_code=404, detail=f"Model {model_code} is not registered")

    @router.post("/{model_code}")
    async def create_document(
        body: dict[str, Any] | list[dict[str, Any]] = Body(...),
        descriptor: ModelDescriptor = Depends(descriptor_for),
    ) -> JSONResponse:
        return await handlers.create(descriptor, body)

    @router.get("/{model_code}")
    async def list_documents(request: Request, descriptor: ModelDescriptor = Depends(descriptor_for)) -> JSONResponse:
        return await handlers.list(descriptor, request.query_params)

    @router.get("/{model_code}/{id}")
    async def get_document(id: str, descriptor: ModelDescriptor = Depends(descriptor_for)) -> JSONResponse:
        return await handlers.one(descriptor, id)

    @router.put("/{model_code}")
    async def update_document(
        body: dict[str, Any] | None = Body(default=None),
        descriptor: ModelDescriptor = Depends(descriptor_for),
    ) -> JSONResponse:
        return await handlers.update(descriptor, body)

    @router.delete("/{model_code}")
    async def delete_documents(
        body: dict[str, Any] | None = Body(default=None),
        descriptor: ModelDescriptor = Depends(descriptor_for),
    ) -> JSONResponse:
        return await handlers.delete(descriptor, body)

    return router
