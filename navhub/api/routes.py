from __future__ import annotations

from flask import jsonify, request

from navhub.api import api_bp
from navhub.extensions import get_catalog
from navhub.models import to_bool
from navhub.services.catalog import (
    CatalogError,
    DuplicateError,
    GroupNotEmptyError,
    ValidationError,
)
from navhub.services.crud import CatalogService
from navhub.services.security import (
    api_auth_required,
    check_credentials,
    issue_token,
    request_is_authenticated,
)


def _service() -> CatalogService:
    return CatalogService(get_catalog())


def _payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _not_found(entity: str):
    return jsonify({"error": f"{entity} not found"}), 404


@api_bp.errorhandler(CatalogError)
def handle_catalog_error(exc: CatalogError):
    status = 400
    if isinstance(exc, (DuplicateError, GroupNotEmptyError)):
        status = 409
    elif not isinstance(exc, ValidationError):
        status = 500
    return jsonify({"error": str(exc)}), status


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok", "service": "navhub"})


@api_bp.route("/auth/login", methods=["POST"])
def login():
    payload = _payload()
    username = str(payload.get("username") or "").strip()
    password = str(payload.get("password") or "")
    remember_me = to_bool(payload.get("remember_me"), default=False)

    if not check_credentials(username, password):
        return jsonify({"success": False, "message": "invalid credentials"}), 401

    token = issue_token(username, remember_me=remember_me)
    message = "login successful"
    if remember_me:
        message = "login successful, session remembered"
    return jsonify({"success": True, "token": token, "message": message})


@api_bp.route("/auth/status")
def auth_status():
    return jsonify({"authenticated": request_is_authenticated()})


@api_bp.route("/groups", methods=["GET"])
def groups_list():
    groups = _service().get_groups(is_authenticated=request_is_authenticated())
    return jsonify([group.as_dict() for group in groups])


@api_bp.route("/groups", methods=["POST"])
@api_auth_required
def groups_create():
    group = _service().create_group(_payload())
    return jsonify(group.as_dict()), 201


@api_bp.route("/groups/<int:group_id>", methods=["GET"])
def groups_get(group_id: int):
    group = _service().get_group(group_id, is_authenticated=request_is_authenticated())
    if group is None:
        return _not_found("group")
    return jsonify(group.as_dict())


@api_bp.route("/groups/<int:group_id>", methods=["PUT", "PATCH"])
@api_auth_required
def groups_update(group_id: int):
    group = _service().update_group(group_id, _payload())
    if group is None:
        return _not_found("group")
    return jsonify(group.as_dict())


@api_bp.route("/groups/<int:group_id>", methods=["DELETE"])
@api_auth_required
def groups_delete(group_id: int):
    if not _service().delete_group(group_id):
        return _not_found("group")
    return jsonify({"success": True})


@api_bp.route("/group-orders", methods=["PUT"])
@api_auth_required
def groups_reorder():
    success = _service().update_group_order(request.get_json(silent=True))
    return jsonify({"success": success})


@api_bp.route("/groups-with-sites", methods=["GET"])
def groups_with_sites():
    return jsonify(
        _service().groups_with_sites(is_authenticated=request_is_authenticated())
    )


@api_bp.route("/sites", methods=["GET"])
def sites_list():
    group_id = request.args.get("groupId", type=int)
    sites = _service().get_sites(
        group_id=group_id, is_authenticated=request_is_authenticated()
    )
    return jsonify([site.as_dict() for site in sites])


@api_bp.route("/sites", methods=["POST"])
@api_auth_required
def sites_create():
    site = _service().create_site(_payload())
    return jsonify(site.as_dict()), 201


@api_bp.route("/sites/<int:site_id>", methods=["GET"])
def sites_get(site_id: int):
    site = _service().get_site(site_id, is_authenticated=request_is_authenticated())
    if site is None:
        return _not_found("site")
    return jsonify(site.as_dict())


@api_bp.route("/sites/<int:site_id>", methods=["PUT", "PATCH"])
@api_auth_required
def sites_update(site_id: int):
    site = _service().update_site(site_id, _payload())
    if site is None:
        return _not_found("site")
    return jsonify(site.as_dict())


@api_bp.route("/sites/<int:site_id>", methods=["DELETE"])
@api_auth_required
def sites_delete(site_id: int):
    if not _service().delete_site(site_id):
        return _not_found("site")
    return jsonify({"success": True})


@api_bp.route("/site-orders", methods=["PUT"])
@api_auth_required
def sites_reorder():
    success = _service().update_site_order(request.get_json(silent=True))
    return jsonify({"success": success})


@api_bp.route("/configs", methods=["GET"])
def configs_list():
    return jsonify(_service().get_configs())


@api_bp.route("/configs/<key>", methods=["GET"])
def configs_get(key: str):
    value = _service().get_config(key)
    if value is None:
        return _not_found("config")
    return jsonify({"key": key, "value": value})


@api_bp.route("/configs/<key>", methods=["PUT"])
@api_auth_required
def configs_set(key: str):
    return jsonify({"success": _service().set_config(key, _payload().get("value"))})


@api_bp.route("/configs/<key>", methods=["DELETE"])
@api_auth_required
def configs_delete(key: str):
    if not _service().delete_config(key):
        return _not_found("config")
    return jsonify({"success": True})


@api_bp.route("/export", methods=["GET"])
@api_auth_required
def export_data():
    return jsonify(_service().export_data())


@api_bp.route("/import", methods=["POST"])
@api_auth_required
def import_data():
    result = _service().import_data(request.get_json(silent=True))
    status = 200 if result.success else 500
    return jsonify(result.as_dict()), status
