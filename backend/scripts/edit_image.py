"""
Command-line client for the Gemini image edit endpoint

Reads a local image, sends it with a prompt to a running API server and
writes the edited image next to it (or to --output).

Usage:
    python scripts/edit_image.py photo.png "make the sky purple"
    python scripts/edit_image.py photo.jpg "add snow" --base-url http://localhost:8000 -o snowy.jpg
"""

import argparse
import base64
import mimetypes
import sys
from pathlib import Path
from typing import Tuple

import requests

DEFAULT_BASE_URL = "http://localhost:8000"

EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


def encode_image(path: Path) -> str:
    """Read an image file as a data URL"""
    mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a data URL into (mime type, raw bytes)"""
    header, _, payload = data_url.partition(",")
    mime_type = header[len("data:"):].split(";")[0] or "image/jpeg"
    return mime_type, base64.b64decode(payload)


def edit_image(base_url: str, image_path: Path, prompt: str, output: Path = None, timeout: float = 90) -> int:
    print(f"🔹 Sending {image_path.name} to {base_url}/api/gemini/edit")
    print(f"   Prompt: {prompt}")

    try:
        response = requests.post(
            f"{base_url.rstrip('/')}/api/gemini/edit",
            json={"imageData": encode_image(image_path), "prompt": prompt},
            timeout=timeout
        )
    except requests.RequestException as e:
        print(f"❌ Request failed: {e}")
        return 1

    try:
        body = response.json()
    except ValueError:
        print(f"❌ Server returned non-JSON response ({response.status_code}): {response.text[:200]}")
        return 1

    if response.status_code != 200 or not body.get("success"):
        print(f"❌ Edit failed ({response.status_code}): {body.get('error')}")
        if body.get("details"):
            print(f"   Details: {body['details']}")
        return 1

    if body.get("_message"):
        print(f"⚠️  {body['_message']}")

    mime_type, image_bytes = decode_data_url(body["editedImage"])
    if output is None:
        extension = EXTENSIONS.get(mime_type, ".img")
        output = image_path.with_name(f"{image_path.stem}_edited{extension}")

    output.write_bytes(image_bytes)
    print(f"✅ Saved edited image to {output} ({len(image_bytes)} bytes, {mime_type})")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Edit an image with Gemini through the API server")
    parser.add_argument("image", type=Path, help="Path to the source image")
    parser.add_argument("prompt", help="Edit instruction")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="API server URL")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Where to write the edited image")
    parser.add_argument("--timeout", type=float, default=90, help="Request timeout in seconds")
    args = parser.parse_args()

    if not args.image.exists():
        print(f"❌ Image not found: {args.image}")
        return 1

    return edit_image(args.base_url, args.image, args.prompt, args.output, args.timeout)


if __name__ == "__main__":
    sys.exit(main())
