from flask import jsonify


def api_success(data=None, status=200):
    return jsonify({"success": True, "data": data, "error": None}), status


def api_error(message, status=400, data=None):
    return jsonify({"success": False, "data": data, "error": message}), status
