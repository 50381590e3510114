from __future__ import annotations

import copy
from typing import Any, Dict

import pytest
import respx


HOST = "https://api.example.com"
REGISTRY = f"{HOST}/api/v1/openapi"

WIDGET_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "count": {"type": "integer"},
        "createdAt": {"type": "string", "format": "date-time"},
    },
    "required": ["id", "name"],
}

OPENAPI_DOCUMENT: Dict[str, Any] = {
    "openapi": "3.1.0",
    "info": {"title": "Widgets", "version": "1.0.0"},
    "paths": {
        "/widgets": {
            "get": {
                "operationId": "listWidgets",
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "items": {"type": "array", "items": WIDGET_SCHEMA},
                                    },
                                }
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "createWidget",
                "responses": {
                    "201": {
                        "description": "Created",
                        "content": {
                            "application/json": {"schema": {"$ref": "#/components/schemas/Widget"}}
                        },
                    }
                },
            },
        },
        "/widgets/{id}": {
            "get": {
                "operationId": "getWidget",
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {"application/json": {"schema": WIDGET_SCHEMA}},
                    },
                    "404": {
                        "description": "Not Found",
                        "content": {"text/plain": {"schema": {"type": "string"}}},
                    },
                },
            },
            "put": {
                "operationId": "replaceWidget",
                "responses": {
                    "200": {"description": "OK", "content": {"application/json": {"schema": WIDGET_SCHEMA}}}
                },
            },
            "patch": {
                "operationId": "updateWidget",
                "responses": {
                    "200": {"description": "OK", "content": {"application/json": {"schema": WIDGET_SCHEMA}}}
                },
            },
            "delete": {
                "operationId": "deleteWidget",
                "responses": {"204": {"description": "Deleted"}},
            },
        },
        "/widgets/{id}/report": {
            "get": {
                "operationId": "downloadReport",
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {
                            "application/octet-stream": {"schema": {"type": "string", "format": "binary"}}
                        },
                    }
                },
            }
        },
        "/widgets/events": {
            "get": {
                "operationId": "streamWidgetEvents",
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {
                            "text/event-stream": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "id": {"type": "string"},
                                        "data": {
                                            "type": "object",
                                            "properties": {
                                                "name": {"type": "string"},
                                                "at": {"type": "string", "format": "date-time"},
                                            },
                                            "required": ["name"],
                                        },
                                    },
                                    "required": ["data"],
                                }
                            }
                        },
                    }
                },
            }
        },
    },
    "components": {"schemas": {"Widget": WIDGET_SCHEMA}},
}


@pytest.fixture
def openapi_document() -> Dict[str, Any]:
    return copy.deepcopy(OPENAPI_DOCUMENT)


@pytest.fixture
def router(openapi_document):
    with respx.mock(assert_all_called=False) as mock_router:
        mock_router.get(f"{REGISTRY}-hash", name="hash").respond(200, text="hash-1")
        mock_router.get(REGISTRY, name="document").respond(200, json=openapi_document)
        yield mock_router
