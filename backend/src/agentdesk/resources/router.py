"""Generic REST router for a ResourceService.

build_resource_router() exposes the listing/CRUD contract of one service:

    GET    {prefix}                   list (query string is the request payload)
    GET    {prefix}/{id}              show
    POST   {prefix}                   store
    PATCH  {prefix}/{id}              update
    DELETE {prefix}/{id}              delete
    POST   {prefix}/{id}/restore      restore
    GET    {prefix}/{id}/can-delete   deletability check
    POST   {prefix}/{id}/photo        photo upload (when photo_folder is set)

Error handling: absent resource -> 404, InvalidDateError/ValidationError -> 422.
A new service is built for every request from the request's session.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from agentdesk.dependencies import get_current_user, get_db_session
from agentdesk.exceptions import ValidationError
from agentdesk.resources.pagination import Page
from agentdesk.resources.service import ResourceService


def build_resource_router(
    service_class: type[ResourceService],
    prefix: str,
    tags: Optional[Sequence[str]] = None,
    photo_folder: Optional[str] = None,
    dependencies: Optional[Sequence[Any]] = None,
) -> APIRouter:
    """Build the router for ``service_class`` mounted under ``prefix``.

    Routes require an authenticated user unless ``dependencies`` says otherwise.
    """
    if dependencies is None:
        dependencies = [Depends(get_current_user)]

    router = APIRouter(prefix=prefix, tags=list(tags or []), dependencies=list(dependencies))
    label = service_class.model.__name__

    def get_service(db: Session = Depends(get_db_session)) -> ResourceService:
        return service_class(db)

    def _serialize(service: ResourceService, resource: Any) -> dict:
        relations = service.relations if service.load_with_relations else ()
        return resource.to_dict(relations)

    def _not_found(id: int) -> HTTPException:
        return HTTPException(status_code=404, detail=f"{label} {id} not found")

    @router.get("")
    def list_endpoint(
        request: Request,
        service: ResourceService = Depends(get_service),
    ):
        """List resources. Any column name in the query string filters by equality."""
        data = dict(request.query_params)
        try:
            result = service.list(data)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=str(e))

        relations = service.relations_for(data)
        if isinstance(result, Page):
            return result.to_dict(relations)
        return [resource.to_dict(relations) for resource in result]

    @router.get("/{id}")
    def show_endpoint(id: int, service: ResourceService = Depends(get_service)) -> dict:
        resource = service.show(id)
        if resource is None:
            raise _not_found(id)
        return _serialize(service, resource)

    @router.post("", status_code=201)
    def store_endpoint(
        data: dict[str, Any] = Body(...),
        service: ResourceService = Depends(get_service),
    ) -> dict:
        resource = service.store(data)
        if resource is None:
            raise HTTPException(status_code=422, detail=f"No valid {label} fields supplied")
        return resource.to_dict()

    @router.patch("/{id}")
    def update_endpoint(
        id: int,
        data: dict[str, Any] = Body(...),
        service: ResourceService = Depends(get_service),
    ) -> dict:
        resource = service.update(id, data)
        if resource is None:
            raise _not_found(id)
        return _serialize(service, resource)

    @router.delete("/{id}")
    def delete_endpoint(id: int, service: ResourceService = Depends(get_service)) -> dict:
        if not service.delete(id):
            raise _not_found(id)
        return {"id": id, "deleted": True}

    @router.post("/{id}/restore")
    def restore_endpoint(id: int, service: ResourceService = Depends(get_service)) -> dict:
        resource = service.restore(id)
        if resource is None:
            raise _not_found(id)
        return _serialize(service, resource)

    @router.get("/{id}/can-delete")
    def can_delete_endpoint(id: int, service: ResourceService = Depends(get_service)) -> dict:
        allowed = service.can_delete(id)
        if allowed is None:
            raise _not_found(id)
        return {"id": id, "can_delete": allowed}

    if photo_folder:

        @router.post("/{id}/photo")
        def photo_endpoint(
            id: int,
            file: UploadFile = File(...),
            service: ResourceService = Depends(get_service),
        ) -> dict:
            """Replace the resource's photo with the uploaded file."""
            resource = service.find(id)
            if resource is None:
                raise _not_found(id)
            resource = service.upload_photo(resource, file, photo_folder)
            return resource.to_dict()

    return router
