"""
Export Blueprint - ICS-309 CSV/PDF downloads and CSV import
"""

from flask import Blueprint, Response, jsonify, request

from commands import net
from web.utils import http_status, result_payload

export_bp = Blueprint('export', __name__)


def _download(result):
    if not result.success:
        return jsonify(result_payload(result)), http_status(result)
    data = result.data
    content = data['content']
    if isinstance(content, str):
        content = content.encode('utf-8')
    return Response(
        content,
        mimetype=data['mimetype'],
        headers={'Content-Disposition': f'attachment; filename="{data["filename"]}"'},
    )


@export_bp.route('/export/csv')
def api_export_csv():
    return _download(net.export_csv())


@export_bp.route('/export/pdf')
def api_export_pdf():
    return _download(net.export_pdf())


@export_bp.route('/import/csv', methods=['POST'])
def api_import_csv():
    """Accepts a multipart "file" upload or a raw text/csv body."""
    upload = request.files.get('file')
    if upload is not None:
        text = upload.read().decode('utf-8-sig', errors='replace')
    else:
        text = request.get_data(as_text=True)

    if not text.strip():
        return jsonify({'error': 'CSV content required'}), 400

    result = net.import_csv(text)
    return jsonify(result_payload(result)), http_status(result, created=True)
