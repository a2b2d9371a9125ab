"""
API routes - User lookup and creation endpoints.

This module defines the HTTP endpoints:
- GET /user/{email} - Fetch a user by email
- POST /user - Create a new user

UserHandler owns its router; the application includes it explicitly at
startup instead of registering routes on a module-level object.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from src.api.models import UserSchema
from src.domain.exceptions import (
    MalformedInput,
    StorageError,
    UserConflict,
    UserNotFound,
    UserRegistryError,
)
from src.domain.ports import UserRegistry

_TEXT_ERROR = {"content": {"text/plain": {"schema": {"type": "string"}}}}


def error_response(message: str, status_code: int) -> PlainTextResponse:
    """Plain-text error body carrying the domain error message."""
    return PlainTextResponse(message, status_code=status_code)


class UserHandler:
    """
    HTTP handler for the user registry.

    Validates and maps requests to registry operations, and maps
    domain errors to transport status codes.
    """

    component = "api"

    def __init__(self, registry: UserRegistry, logger: logging.Logger) -> None:
        self.registry = registry
        self.logger = logger
        self.router = self._build_router()

    def _build_router(self) -> APIRouter:
        router = APIRouter(tags=["users"])
        # GET /user is routed too so a missing email is answered with 400
        for path in ("/user", "/user/{email:path}"):
            router.add_api_route(
                path,
                self.get_user,
                methods=["GET"],
                response_model=UserSchema,
                responses={
                    400: {**_TEXT_ERROR, "description": "Malformed URI"},
                    404: {**_TEXT_ERROR, "description": "User not found"},
                    500: {**_TEXT_ERROR, "description": "Storage error"},
                },
                summary="Get a user by email",
                include_in_schema=path != "/user",
            )
        router.add_api_route(
            "/user",
            self.create_user,
            methods=["POST"],
            status_code=status.HTTP_204_NO_CONTENT,
            response_class=Response,
            responses={
                400: {**_TEXT_ERROR, "description": "Malformed JSON or validation error"},
                409: {**_TEXT_ERROR, "description": "Email or ID already exists"},
                500: {**_TEXT_ERROR, "description": "Storage error"},
            },
            summary="Create a user",
            openapi_extra={
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": UserSchema.model_json_schema(by_alias=True)
                        }
                    },
                }
            },
        )
        return router

    def _extra(self, route: str, request: Request, **fields: object) -> dict:
        return {"component": self.component, "route": route, "path": request.url.path, **fields}

    @staticmethod
    def _route_path(request: Request) -> str:
        """Request path without the ASGI root_path the app is mounted under."""
        path = request.scope["path"]
        root_path = request.scope.get("root_path", "")
        if root_path and path.startswith(root_path):
            return path[len(root_path):]
        return path

    async def get_user(self, request: Request) -> Response:
        """
        Fetch a user by the email in the second path segment.

        The path is split on "/" after trimming; anything shorter than
        /user/<email> is a malformed URI.
        """
        segments = self._route_path(request).strip("/").split("/")
        if len(segments) < 2:
            self.logger.error("malformed URI", extra=self._extra("getUser", request))
            return error_response("malformed URI", status.HTTP_400_BAD_REQUEST)

        email = segments[1]
        extra = self._extra("getUser", request, user=email)
        try:
            user = await self.registry.get_user(email)
        except UserNotFound as e:
            self.logger.warning("user not found", extra=extra)
            return error_response(str(e), status.HTTP_404_NOT_FOUND)
        except UserRegistryError as e:
            self.logger.error("error requesting user", extra=extra, exc_info=True)
            return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            body = UserSchema.from_user(user).model_dump(mode="json", by_alias=True)
        except (TypeError, ValueError) as e:
            self.logger.error(
                "error to encode to json", extra={**extra, "user_object": user}, exc_info=True
            )
            return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        self.logger.debug("user found", extra=extra)
        return JSONResponse(body, status_code=status.HTTP_200_OK)

    async def create_user(self, request: Request) -> Response:
        """
        Create a user from a JSON body.

        Returns 204 with an empty body on success.
        """
        try:
            payload = UserSchema.model_validate_json(await request.body())
        except ValidationError as e:
            self.logger.error(
                "error to decode from json", extra=self._extra("createUser", request, error=str(e))
            )
            return error_response(str(e), status.HTTP_400_BAD_REQUEST)

        user = payload.to_user()
        extra = self._extra("createUser", request, user=user)
        try:
            user.validate()
        except MalformedInput as e:
            self.logger.error(str(e), extra=extra)
            return error_response(str(e), status.HTTP_400_BAD_REQUEST)

        try:
            await self.registry.create_user(user)
        except UserConflict as e:
            self.logger.error(str(e), extra=extra)
            return error_response(str(e), status.HTTP_409_CONFLICT)
        except StorageError as e:
            # Driver detail stays in the log; the client gets the generic message
            self.logger.error("create user error", extra=extra, exc_info=True)
            return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
        except UserRegistryError as e:
            self.logger.error("create user error", extra=extra)
            return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        self.logger.info("user created", extra=extra)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
