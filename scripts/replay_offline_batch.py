#!/usr/bin/env python3
"""
将离线保存的交易文件上传为批次，并触发按顺序提交。

文件格式为 JSON 数组，元素可以是 XDR 字符串，也可以是
{"xdr": "...", "threshold": {"required_weight": 2, "signers": {...}}}。

示例：
    python scripts/replay_offline_batch.py offline.json \
        --server http://127.0.0.1:8000 \
        --batch-id field-2026-10-19
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

import urllib.error
import urllib.parse
import urllib.request


def http_json(method: str, url: str, payload: Optional[dict[str, Any]] = None,
              timeout: int = 30) -> tuple[int, bytes]:
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"}, method=method)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read()


def load_envelopes(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        raise SystemExit(f"file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("envelopes", [])
    if not isinstance(data, list) or not data:
        raise SystemExit(f"no envelopes found in {path}")

    envelopes = []
    for entry in data:
        if isinstance(entry, str):
            envelopes.append({"xdr": entry})
        elif isinstance(entry, dict) and entry.get("xdr"):
            envelopes.append({"xdr": entry["xdr"], "threshold": entry.get("threshold")})
        else:
            raise SystemExit(f"unsupported entry: {entry!r}")
    return envelopes


def upload_batch(api: str, batch_id: str, envelopes: list[dict[str, Any]]) -> dict[str, Any]:
    url = f"{api}/offline/batches/{urllib.parse.quote(batch_id)}"
    print(f"[api] uploading {len(envelopes)} envelopes to {url}")
    status, body = http_json("PUT", url, {"envelopes": envelopes})
    if status != 200:
        raise SystemExit(f"upload failed: {status} {body.decode(errors='ignore')}")
    return json.loads(body.decode("utf-8"))


def submit_batch(api: str, batch_id: str, timeout_seconds: Optional[float]) -> dict[str, Any]:
    url = f"{api}/offline/batches/{urllib.parse.quote(batch_id)}/submit"
    payload = {"timeout_seconds": timeout_seconds} if timeout_seconds else {}
    print(f"[api] submitting batch {batch_id}")
    status, body = http_json("POST", url, payload, timeout=600)
    if status != 200:
        raise SystemExit(f"submit failed: {status} {body.decode(errors='ignore')}")
    return json.loads(body.decode("utf-8"))


def main() -> None:
    parser = argparse.ArgumentParser(description="Upload an offline transaction file and replay it")
    parser.add_argument("file", type=Path, help="JSON file with stored envelopes")
    parser.add_argument("--server", default="http://127.0.0.1:8000", help="Relief server base URL")
    parser.add_argument("--api-prefix", default="/api", help="API prefix configured on the server")
    parser.add_argument("--batch-id", help="Batch identifier (defaults to the file name)")
    parser.add_argument("--timeout", type=float, help="Stop submitting after this many seconds")
    parser.add_argument(
        "--upload-only",
        action="store_true",
        help="Store the batch without submitting it",
    )
    args = parser.parse_args()

    api = args.server.rstrip("/") + args.api_prefix
    batch_id = args.batch_id or args.file.stem
    upload_batch(api, batch_id, load_envelopes(args.file))
    if args.upload_only:
        print(f"[done] batch {batch_id} stored")
        return

    report = submit_batch(api, batch_id, args.timeout)
    print(f"[done] stop reason: {report.get('stop_reason')}")
    print(json.dumps(report, ensure_ascii=False, indent=2))
    if report.get("stopped_early"):
        sys.exit(2)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit("aborted by user")
