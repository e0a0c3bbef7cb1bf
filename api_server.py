#!/usr/bin/env python3
"""
Photo Segmenter API Server
Upload a photo (or trigger the server camera) and get back the labeled regions.
"""

import os
import asyncio
import logging
import uuid
import base64
from pathlib import Path
from io import BytesIO
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename
from PIL import Image as PILImage

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

# Import services and models
from models.capture import CaptureMode
from models.image_handle import ImageHandle
from pipeline.segment_photo import PhotoSegmentation, segment_photo, capture_and_segment
from repositories.segmentation_repository import SegmentationRepository
from services.acquisition_service import AcquisitionService

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "data/temp_uploads")
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,bmp,webp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20")) * 1024 * 1024

app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Ensure directories exist
Path(UPLOAD_FOLDER).mkdir(parents=True, exist_ok=True)

# Initialize services (the model itself loads on the first request)
segmentation_repository = SegmentationRepository()
acquisition_service = AcquisitionService()

logger = logging.getLogger(__name__)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def mask_to_base64(mask) -> str:
    """Encode a category mask as a base64 PNG data URI (pixel value = label id)."""
    buffer = BytesIO()
    PILImage.fromarray(mask).save(buffer, format='PNG')
    base64_string = base64.b64encode(buffer.getvalue()).decode('utf-8')
    return f"data:image/png;base64,{base64_string}"


def outcome_response(outcome: PhotoSegmentation):
    """Map a pipeline outcome to a JSON response."""
    if outcome is None:
        return jsonify({'success': False, 'message': 'Image could not be decoded'}), 422

    if not outcome.ok:
        return jsonify({'success': False, 'message': outcome.error}), 502

    mask = outcome.segmentations[0].category_mask if outcome.segmentations else None
    return jsonify({
        'success': True,
        'rotation_degrees': outcome.rotation_degrees,
        'inference_time_ms': outcome.inference_time_ms,
        'image_height': outcome.image_height,
        'image_width': outcome.image_width,
        'labels': [
            {'id': label.id, 'label': label.label, 'color': list(label.color)}
            for label in outcome.color_labels
        ],
        'category_mask': mask_to_base64(mask) if mask is not None else None,
    })


@app.route('/api/segment', methods=['POST'])
def segment_upload():
    """Segment an uploaded photo."""
    if 'image' not in request.files:
        return jsonify({'success': False, 'message': 'No image provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'message': 'No file selected'}), 400
    if not allowed_file(file.filename):
        return jsonify({'success': False, 'message': 'File type not allowed'}), 400

    upload_dir = Path(app.config['UPLOAD_FOLDER'])
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = secure_filename(file.filename)
    upload_path = upload_dir / f"upload_{uuid.uuid4().hex}_{filename}"
    file.save(str(upload_path))

    try:
        outcome = asyncio.run(segment_photo(
            ImageHandle.from_path(upload_path),
            segmentation_repository=segmentation_repository,
        ))
        return outcome_response(outcome)
    except asyncio.TimeoutError:
        logger.error(f"Segmentation timed out for {filename}")
        return jsonify({'success': False, 'message': 'Segmentation timed out'}), 504
    except Exception as e:
        logger.error(f"Segmentation error: {e}")
        return jsonify({'success': False, 'message': 'Error segmenting image'}), 500
    finally:
        # Clean up temp file
        if upload_path.exists():
            upload_path.unlink()


@app.route('/api/capture', methods=['POST'])
def capture_photo():
    """Take a photo with the server camera and segment it."""
    try:
        outcome = asyncio.run(capture_and_segment(
            acquisition_service,
            CaptureMode.CAMERA,
            segmentation_repository=segmentation_repository,
        ))
    except asyncio.TimeoutError:
        logger.error("Segmentation timed out for camera capture")
        return jsonify({'success': False, 'message': 'Segmentation timed out'}), 504
    except Exception as e:
        logger.error(f"Capture error: {e}")
        return jsonify({'success': False, 'message': 'Error capturing image'}), 500

    if outcome is None:
        # nothing captured, or the frame could not be decoded
        return '', 204
    return outcome_response(outcome)


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Photo Segmenter API is running',
    })


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


if __name__ == '__main__':
    print("🚀 Starting Photo Segmenter API Server...")
    print(f"📁 Upload directory: {UPLOAD_FOLDER}")
    print(f"🔧 Max upload size: {MAX_CONTENT_LENGTH // (1024*1024)}MB")
    print("📋 Endpoints:")
    print("   POST /api/segment")
    print("   POST /api/capture")
    print("   GET  /api/health")
    print("="*60)

    app.run(host=os.getenv("API_HOST", "0.0.0.0"), port=int(os.getenv("API_PORT", "5000")), debug=False)
