# Overview: JSON response envelope shared by all API routes.

from flask import jsonify


def ok(data=None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def fail(error: str, status: int, **extra):
    body = {"success": False, "error": error}
    body.update(extra)
    return jsonify(body), status
