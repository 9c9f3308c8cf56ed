#!/usr/bin/env python3
"""
Photo Filter API Server
Session-based editing: upload once, then re-render from the original on every
slider change or preset click.
"""

import os
import logging
import threading
import uuid
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

from .errors import (
    DecodeError,
    EncodeError,
    InvalidParameterError,
    InvalidPresetNameError,
    PresetNotFoundError,
    PresetStoreError,
)
from .models.adjustment_parameters import AdjustmentParameters
from .models.raster_buffer import RasterBuffer
from .services.adjustment_service import AdjustmentService
from .services.image_service import ImageService
from .services.preset_service import PresetService

logger = logging.getLogger(__name__)

# Configuration
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "25")) * 1024 * 1024


class EditSession:
    """Holds one user's original image, current rendering and slider values."""

    def __init__(self, session_id: str, original: RasterBuffer, filename: str = ""):
        self.session_id = session_id
        self.filename = filename
        self.original = original
        self.current = original.copy()
        self.parameters = AdjustmentParameters()
        self.lock = threading.Lock()

    def reset(self):
        self.current = self.original.copy()
        self.parameters = AdjustmentParameters()


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def _error(message: str, status: int):
    return jsonify({'success': False, 'message': message}), status


def _json_object() -> Optional[dict]:
    """Request body as a dict; None when it is missing or not a JSON object."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


def create_app(
    preset_service: Optional[PresetService] = None,
    image_service: Optional[ImageService] = None,
) -> Flask:
    """Build the Flask app; services default to env-configured instances."""
    app = Flask(__name__)
    CORS(app)  # Enable CORS for frontend communication
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

    preset_service = preset_service or PresetService()
    image_service = image_service or ImageService()
    adjustment_service = AdjustmentService(preset_service)

    sessions: Dict[str, EditSession] = {}
    sessions_lock = threading.Lock()
    app.config['SESSIONS'] = sessions

    def get_session(payload) -> Optional[EditSession]:
        session_id = payload.get('session_id')
        if not isinstance(session_id, str):
            return None
        with sessions_lock:
            return sessions.get(session_id)

    def render_response(session: EditSession, **extra):
        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'width': session.current.width,
            'height': session.current.height,
            'adjustments': session.parameters.to_dict(),
            'image': image_service.to_data_url(session.current),
            **extra,
        })

    @app.route('/api/load-image', methods=['POST'])
    def load_image():
        """Decode an uploaded image into a new editing session."""
        if 'image' not in request.files:
            return _error('No image provided', 400)
        file = request.files['image']
        if file.filename == '':
            return _error('No file selected', 400)
        if not allowed_file(file.filename):
            return _error(f'Unsupported file type: {file.filename}', 400)

        filename = secure_filename(file.filename)
        try:
            original = image_service.load_bytes(file.read(), filename)
        except DecodeError as e:
            logger.warning(f"Upload rejected: {e}")
            return _error(f'Could not decode image: {e}', 400)

        session = EditSession(str(uuid.uuid4()), original, filename)
        with sessions_lock:
            sessions[session.session_id] = session
        logger.info(f"Session {session.session_id}: loaded {filename} ({original.width}x{original.height})")

        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'width': original.width,
            'height': original.height,
            'message': f'Loaded {filename}'
        })

    @app.route('/api/apply', methods=['POST'])
    def apply():
        """Re-render the session's original with the posted adjustments."""
        payload = _json_object()
        if payload is None:
            return _error('JSON object expected', 400)
        session = get_session(payload)
        if session is None:
            return _error('Invalid session', 404)
        adjustments = payload.get('adjustments') or {}
        if not isinstance(adjustments, dict):
            return _error('adjustments must be an object', 400)
        try:
            params = AdjustmentParameters(adjustments)
        except InvalidParameterError as e:
            return _error(str(e), 400)

        with session.lock:
            session.current = adjustment_service.apply(session.original, params)
            session.parameters = params
            return render_response(session)

    @app.route('/api/apply-preset', methods=['POST'])
    def apply_preset():
        """Reset, then apply a built-in or stored preset."""
        payload = _json_object()
        if payload is None:
            return _error('JSON object expected', 400)
        session = get_session(payload)
        if session is None:
            return _error('Invalid session', 404)
        try:
            with session.lock:
                session.current, session.parameters = adjustment_service.apply_preset(
                    session.original, payload.get('preset', '')
                )
                return render_response(session, preset=payload.get('preset'))
        except PresetNotFoundError as e:
            return _error(e.args[0], 404)
        except InvalidPresetNameError as e:
            return _error(str(e), 400)

    @app.route('/api/reset', methods=['POST'])
    def reset():
        payload = _json_object()
        if payload is None:
            return _error('JSON object expected', 400)
        session = get_session(payload)
        if session is None:
            return _error('Invalid session', 404)
        with session.lock:
            session.reset()
            return render_response(session)

    @app.route('/api/image/<session_id>')
    def download_image(session_id):
        """Current rendering as a PNG attachment."""
        with sessions_lock:
            session = sessions.get(session_id)
        if session is None:
            return jsonify({'error': 'Session not found'}), 404
        try:
            data = image_service.to_png_bytes(session.current)
        except EncodeError as e:
            logger.error(f"Encoding failed for session {session_id}: {e}")
            return jsonify({'error': 'Could not encode image'}), 500
        download_name = image_service.png_path(Path(session.filename or 'image').stem + '_filtered').name
        return send_file(BytesIO(data), mimetype='image/png', as_attachment=True, download_name=download_name)

    @app.route('/api/presets', methods=['GET'])
    def list_presets():
        return jsonify({
            'builtin': {name: params.to_dict() for name, params in preset_service.builtin_presets().items()},
            'saved': {name: params.to_dict() for name, params in preset_service.load_presets().items()},
        })

    @app.route('/api/presets', methods=['POST'])
    def save_preset():
        payload = _json_object()
        if payload is None:
            return _error('JSON object expected', 400)
        adjustments = payload.get('adjustments') or {}
        if not isinstance(adjustments, dict):
            return _error('adjustments must be an object', 400)
        try:
            name = preset_service.save_preset(payload.get('name', ''), adjustments)
        except (InvalidPresetNameError, InvalidParameterError) as e:
            return _error(str(e), 400)
        return jsonify({'success': True, 'name': name, 'message': 'Filter saved successfully!'})

    @app.route('/api/presets/<name>', methods=['DELETE'])
    def delete_preset(name):
        try:
            deleted = preset_service.delete_preset(name)
        except InvalidPresetNameError as e:
            return _error(str(e), 400)
        if not deleted:
            return _error('Filter not found', 404)
        return jsonify({'success': True, 'message': 'Filter deleted successfully!'})

    @app.route('/api/health', methods=['GET'])
    def health_check():
        with sessions_lock:
            active = len(sessions)
        return jsonify({
            'status': 'healthy',
            'message': 'Photo Filter API is running',
            'active_sessions': active
        })

    @app.route('/api/clear-session', methods=['POST'])
    def clear_session():
        payload = _json_object()
        if payload is None:
            return _error('JSON object expected', 400)
        with sessions_lock:
            session_id = payload.get('session_id')
            session = sessions.pop(session_id, None) if isinstance(session_id, str) else None
        if session is None:
            return _error('Session not found', 404)
        return jsonify({'success': True, 'message': 'Session cleared'})

    @app.errorhandler(PresetStoreError)
    def preset_store_error(e):
        logger.error(f"Preset store failure: {e}")
        return jsonify({'error': 'Preset storage unavailable'}), 500

    @app.errorhandler(413)
    def too_large(e):
        """Handle file too large error."""
        return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413

    return app


def main():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    app = create_app()
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "5000"))
    logger.info(f"Starting Photo Filter API on {host}:{port} (max upload {MAX_CONTENT_LENGTH // (1024 * 1024)}MB)")
    app.run(host=host, port=port, threaded=True)


if __name__ == '__main__':
    main()
