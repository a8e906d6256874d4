"""Branch CRUD endpoints, one set per tree level (``/branches1`` .. ``/branches5``)."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
from fastapi import APIRouter, Request, status
from fastapi.responses import Response

from branchdocs.levels import LEVELS, endpoint_for
from branchdocs.schemas import ErrorCode
from branchdocs.validation import CreateBranchInput, UpdateBranchInput, parse_id, validate
from server.proxy import create_error_response, proxy_to_backend
from server.server_config import INVALID_ID_MESSAGE, INVALID_JSON_MESSAGE

router = APIRouter(tags=["branches"])

_INVALID = object()


def get_backend_client(request: Request) -> httpx.AsyncClient:
    """Backend client created by the app factory."""
    return request.app.state.backend_client


async def _read_json(request: Request) -> Any:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _INVALID
    # Objects and arrays go on to schema validation; bare falsy values do not.
    if not body and not isinstance(body, (dict, list)):
        return _INVALID
    return body


def _validation_error(message: str) -> Response:
    return create_error_response(message, status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR.value)


def _make_collection_routes(collection: str) -> tuple[Callable[..., Any], Callable[..., Any]]:
    async def list_branches(request: Request) -> Response:
        """List every branch on this level.

        **Returns**

        - **200**: JSON array of branch records, straight from the backend

        """
        result = await proxy_to_backend(get_backend_client(request), collection, "GET")
        return result.to_response()

    async def create_branch(request: Request) -> Response:
        """Validate and create a branch on this level.

        **Body**

        - **title** (`str`): 1-500 characters
        - **content** (`str`): non-empty HTML
        - **branch_id** (`int | null`, optional): parent id on the previous level
        - **isShow**, **isAdd** (`bool`, optional): default ``false``

        **Returns**

        - **201/200**: the created record
        - **400**: ``VALIDATION_ERROR`` for malformed JSON or schema violations

        """
        body = await _read_json(request)
        if body is _INVALID:
            return _validation_error(INVALID_JSON_MESSAGE)

        validation = validate(CreateBranchInput, body)
        if not validation.success:
            return _validation_error(validation.error or "Validation failed")

        result = await proxy_to_backend(get_backend_client(request), collection, "POST", body=validation.data)
        return result.to_response()

    return list_branches, create_branch


def _make_item_routes(collection: str) -> tuple[Callable[..., Any], Callable[..., Any], Callable[..., Any]]:
    async def get_branch(request: Request, branch_id: str) -> Response:
        """Fetch one branch by id.

        **Returns**

        - **200**: the record
        - **400**: ``VALIDATION_ERROR`` when the id is not a non-negative integer

        """
        parsed = parse_id(branch_id)
        if parsed is None:
            return _validation_error(INVALID_ID_MESSAGE)
        result = await proxy_to_backend(get_backend_client(request), f"{collection}/{parsed}", "GET")
        return result.to_response()

    async def update_branch(request: Request, branch_id: str) -> Response:
        """Validate and apply a partial update.

        At least one of ``title``, ``content``, ``branch_id``, ``isShow`` or
        ``isAdd`` must be present.
        """
        parsed = parse_id(branch_id)
        if parsed is None:
            return _validation_error(INVALID_ID_MESSAGE)

        body = await _read_json(request)
        if body is _INVALID:
            return _validation_error(INVALID_JSON_MESSAGE)

        validation = validate(UpdateBranchInput, body)
        if not validation.success:
            return _validation_error(validation.error or "Validation failed")

        result = await proxy_to_backend(
            get_backend_client(request),
            f"{collection}/{parsed}",
            "PATCH",
            body=validation.data,
        )
        return result.to_response()

    async def delete_branch(request: Request, branch_id: str) -> Response:
        """Delete one branch. Children on deeper levels are not touched."""
        parsed = parse_id(branch_id)
        if parsed is None:
            return _validation_error(INVALID_ID_MESSAGE)
        result = await proxy_to_backend(get_backend_client(request), f"{collection}/{parsed}", "DELETE")
        return result.to_response()

    return get_branch, update_branch, delete_branch


def _register_level(level: int) -> None:
    collection = endpoint_for(level)
    list_branches, create_branch = _make_collection_routes(collection)
    get_branch, update_branch, delete_branch = _make_item_routes(collection)
    item = f"{collection}/{{branch_id}}"

    router.add_api_route(collection, list_branches, methods=["GET"], name=f"list_branches{level}", response_model=None)
    router.add_api_route(
        collection, create_branch, methods=["POST"], name=f"create_branch{level}", response_model=None
    )
    router.add_api_route(item, get_branch, methods=["GET"], name=f"get_branch{level}", response_model=None)
    router.add_api_route(item, update_branch, methods=["PATCH"], name=f"update_branch{level}", response_model=None)
    router.add_api_route(item, delete_branch, methods=["DELETE"], name=f"delete_branch{level}", response_model=None)


for _level in LEVELS:
    _register_level(_level)
