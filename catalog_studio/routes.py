"""
Flask routes for the catalog generator
JSON API over in-memory sessions, plus the preview image and PDF download
"""

import asyncio
import io
import math
from pathlib import Path

from flask import Blueprint, request, current_app, jsonify, send_file
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from .errors import CatalogError, RenderError, SessionNotFoundError, ValidationError
from .models import CustomElement
from .sessions import CatalogServices


bp = Blueprint('catalog', __name__, url_prefix='/api')


def services() -> CatalogServices:
    return current_app.extensions['catalog_studio']


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def number_field(data: dict, name: str, required: bool = True):
    value = data.get(name)
    if value is None:
        if required:
            raise ValidationError(f"Missing field: {name}", details={'field': name})
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"Field {name} must be a finite number", details={'field': name, 'value': value})
    return float(value)


@bp.errorhandler(CatalogError)
def handle_catalog_error(e: CatalogError):
    if isinstance(e, ValidationError):
        status = 400
    elif isinstance(e, SessionNotFoundError):
        status = 404
    else:
        status = 500
    log = logger.error if isinstance(e, RenderError) else logger.warning
    log(f"{e.__class__.__name__}: {e.message}")
    return jsonify(e.to_dict()), status


# Catalog data

@bp.route('/items', methods=['GET'])
def list_items():
    query = request.args.get('q', '')
    items = services().items.search(query)
    return jsonify({'items': [item.model_dump() for item in items], 'count': len(items)})


@bp.route('/templates', methods=['GET'])
def list_templates():
    registry = services().templates
    return jsonify({
        'templates': [t.model_dump() for t in registry.all()],
        'default': registry.default_id,
    })


@bp.route('/presets', methods=['GET'])
def list_presets():
    return jsonify({'presets': services().presets})


# Sessions

@bp.route('/sessions', methods=['POST'])
def create_session():
    session = services().create_session()
    return jsonify(session.to_dict()), 201


@bp.route('/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(services().get_session(session_id).to_dict())


@bp.route('/sessions/<session_id>', methods=['DELETE'])
def delete_session(session_id):
    services().close_session(session_id)
    return '', 204


@bp.route('/sessions/<session_id>/selection/<item_id>', methods=['POST'])
def toggle_item(session_id, item_id):
    svc = services()
    session = svc.get_session(session_id)
    selected = session.workspace.toggle(svc.items.get(item_id))
    return jsonify({'item_id': item_id, 'selected': selected, 'session': session.to_dict()})


# Prices

@bp.route('/sessions/<session_id>/prices/<item_id>', methods=['PUT'])
def set_price(session_id, item_id):
    session = services().get_session(session_id)
    data = json_body()
    session.workspace.set_price(
        item_id,
        number_field(data, 'price'),
        number_field(data, 'original_price', required=False),
    )
    return jsonify(session.to_dict())


@bp.route('/sessions/<session_id>/prices/<item_id>', methods=['DELETE'])
def reset_price(session_id, item_id):
    session = services().get_session(session_id)
    session.workspace.reset_price(item_id)
    return jsonify(session.to_dict())


@bp.route('/sessions/<session_id>/prices', methods=['DELETE'])
def reset_all_prices(session_id):
    session = services().get_session(session_id)
    session.workspace.reset_all_prices()
    return jsonify(session.to_dict())


@bp.route('/sessions/<session_id>/markup', methods=['POST'])
def apply_markup(session_id):
    session = services().get_session(session_id)
    session.workspace.apply_markup(number_field(json_body(), 'percent'))
    return jsonify(session.to_dict())


# Layout and style

@bp.route('/sessions/<session_id>/template', methods=['PUT'])
def set_template(session_id):
    session = services().get_session(session_id)
    template_id = json_body().get('template_id')
    if template_id is None:
        raise ValidationError("Missing field: template_id", details={'field': 'template_id'})
    session.workspace.set_template(str(template_id))
    return jsonify(session.to_dict())


@bp.route('/sessions/<session_id>/style', methods=['PATCH'])
def update_style(session_id):
    session = services().get_session(session_id)
    session.workspace.update_style(**json_body())
    return jsonify(session.to_dict())


@bp.route('/sessions/<session_id>/style/preset', methods=['POST'])
def apply_style_preset(session_id):
    session = services().get_session(session_id)
    session.workspace.apply_style_preset(str(json_body().get('preset', '')))
    return jsonify(session.to_dict())


# Custom elements

@bp.route('/sessions/<session_id>/elements', methods=['POST'])
def add_element(session_id):
    session = services().get_session(session_id)
    data = json_body()
    if not data:
        element = session.workspace.add_text_element()
    else:
        try:
            element = CustomElement.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid custom element: {e}")
        session.workspace.add_element(element)
    return jsonify(element.model_dump()), 201


@bp.route('/sessions/<session_id>/elements/<element_id>', methods=['PATCH'])
def update_element(session_id, element_id):
    session = services().get_session(session_id)
    element = session.workspace.update_element(element_id, **json_body())
    return jsonify(element.model_dump())


@bp.route('/sessions/<session_id>/elements/<element_id>', methods=['DELETE'])
def remove_element(session_id, element_id):
    session = services().get_session(session_id)
    session.workspace.remove_element(element_id)
    return '', 204


# Rendering

@bp.route('/sessions/<session_id>/preview.png', methods=['GET'])
def preview_png(session_id):
    svc = services()
    session = svc.get_session(session_id)
    page = request.args.get('page', type=int)
    with session.workspace.lock:
        if page is not None:
            session.workspace.set_page(page)
        snapshot = session.workspace.snapshot()

    result = asyncio.run(svc.preview.render(snapshot))
    response = send_file(io.BytesIO(result.to_png()), mimetype='image/png')
    response.headers['X-Page-Index'] = str(result.page_index)
    response.headers['X-Total-Pages'] = str(result.total_pages)
    return response


@bp.route('/sessions/<session_id>/export', methods=['POST'])
def export_pdf(session_id):
    svc = services()
    session = svc.get_session(session_id)

    artifact = asyncio.run(session.exporter.export(session.workspace))
    saved = artifact.save(Path(current_app.config['EXPORT_FOLDER']))
    logger.info(f"Session {session_id} exported {artifact.page_count} pages to {saved}")

    return send_file(
        io.BytesIO(artifact.data),
        mimetype=artifact.mimetype,
        as_attachment=True,
        download_name=artifact.filename,
    )


@bp.route('/sessions/<session_id>/export', methods=['GET'])
def export_status(session_id):
    session = services().get_session(session_id)
    return jsonify(session.exporter.status.to_dict())
