import io
import shutil
import uuid
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional

from flask import Flask, jsonify, request, send_file
from werkzeug.datastructures import FileStorage

import config
from kanim.errors import ConversionError
from services.converter import convert

app = Flask(__name__)
app.config["WORK_DIR"] = config.WORK_DIR

UNSAFE_NAMES = {"", ".", ".."}


def member_name(filename: str) -> Optional[str]:
    """Base name of an archive member, or None when it cannot be written as-is."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    if name in UNSAFE_NAMES or "\x00" in name:
        return None
    return name


def extract_project(file_storage: FileStorage, work_dir: Path) -> Path:
    """
    Unpack an uploaded project archive and locate its .scml file.

    Raises:
        ValueError: If nothing was uploaded, the upload is not a zip archive,
                    or the archive holds no .scml file.
    """
    if not file_storage or not file_storage.filename:
        raise ValueError("Please choose a project archive to upload.")
    if not file_storage.filename.lower().endswith(".zip"):
        raise ValueError("Unsupported file type. Please upload a .zip of the Spriter project.")

    project_dir = work_dir / "project"
    project_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(file_storage.stream) as archive:
            for member in archive.infolist():
                if member.is_dir():
                    continue
                name = member_name(member.filename)
                if not name:
                    continue
                with archive.open(member) as src, open(project_dir / name, "wb") as dst:
                    dst.write(src.read())
    except zipfile.BadZipFile as exc:
        raise ValueError("Uploaded file is not a valid zip archive.") from exc

    scml_files = sorted(project_dir.glob("*.scml"))
    if not scml_files:
        raise ValueError("The archive does not contain a .scml file.")
    return scml_files[0]


def zip_outputs(*paths: Path) -> io.BytesIO:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
        for file_path in paths:
            zipf.write(file_path, file_path.name)
    buffer.seek(0)
    return buffer


@app.route("/api/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


@app.route("/api/convert", methods=["POST"])
def convert_project():
    """Convert an uploaded Spriter project and return the kanim files as a ZIP."""
    upload: Optional[FileStorage] = request.files.get("project")
    job_id = uuid.uuid4().hex[:8]
    work_dir = Path(app.config["WORK_DIR"]) / job_id

    try:
        try:
            scml_path = extract_project(upload, work_dir)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        try:
            result = convert(scml_path, output_dir=work_dir / "output")
        except ConversionError as e:
            print(f"Conversion failed for job {job_id}: {e}")
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            print(f"Error converting job {job_id}: {e}")
            import traceback
            traceback.print_exc()
            return jsonify({"error": str(e)}), 500

        archive = zip_outputs(result.build_path, result.anim_path, result.image_path, result.atlas_path)
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)

    return send_file(
        archive,
        as_attachment=True,
        download_name=f"{result.entity_name}_kanim.zip",
        mimetype="application/zip"
    )


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT, debug=config.DEBUG)
