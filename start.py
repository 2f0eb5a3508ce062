#!/usr/bin/env python3
"""
Management script for the RAG backend.

    python start.py check              validate keys and show the active backend
    python start.py install            install the package with its test extra
    python start.py start              run the API under uvicorn
    python start.py test               run the test suite
    python start.py ingest FILE...     send text files to a running server
    python start.py ask "QUESTION"     query a running server
"""

import os
import sys
import json
import subprocess
import argparse
from pathlib import Path

import httpx


def check_environment():
    """Validate API keys and print the effective backend and cache settings."""
    from rag_backend.config.settings import get_config, validate_api_keys
    from rag_backend.utils.exceptions import APIKeyError

    config = get_config()
    try:
        validate_api_keys(config)
    except APIKeyError as e:
        print(f"❌ {e}")
        print("   Set them in .env or the environment")
        return False

    print("✅ Embedding and LLM keys found")
    print(f"ℹ️  Embedding model: {config.embedding.model_name} (min interval {config.embedding.min_request_interval}s)")
    print(f"ℹ️  LLM model: {config.llm.model_name}")
    store = config.database.backend
    if store == "qdrant":
        store += f" at {config.database.qdrant_url}"
    print(f"ℹ️  Document store: {store}")
    cache = f"{config.cache.mode}, TTL {config.cache.ttl_seconds}s" if config.cache.enabled else "disabled"
    print(f"ℹ️  Answer cache: {cache}")
    return True


def run(cmd):
    try:
        subprocess.run(cmd, check=True)
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ {' '.join(cmd)} exited with {e.returncode}")
        return False


def post(base_url, path, payload):
    """POST to a running server and print the JSON reply."""
    try:
        response = httpx.post(f"{base_url.rstrip('/')}{path}", json=payload, timeout=120.0)
    except httpx.HTTPError as e:
        print(f"❌ Could not reach {base_url}: {e}")
        return False
    print(json.dumps(response.json(), indent=2))
    return response.is_success


def ingest_files(base_url, paths):
    ok = True
    for path in paths:
        print(f"📄 {path}")
        ok = post(base_url, "/api/embeddings/add", {"text": Path(path).read_text(encoding="utf-8")}) and ok
    return ok


def main():
    parser = argparse.ArgumentParser(description="RAG backend management")
    parser.add_argument("command", choices=["check", "install", "start", "test", "ingest", "ask"])
    parser.add_argument("args", nargs="*", help="Files for ingest, the question for ask")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host for start (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port for start (default: 8000)")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload for start")
    parser.add_argument("--url", default="http://localhost:8000", help="Server for ingest/ask")

    args = parser.parse_args()
    os.chdir(Path(__file__).parent)

    if args.command == "check":
        ok = check_environment()
    elif args.command == "install":
        print("📦 Installing with uv...")
        ok = run(["uv", "pip", "install", "-e", ".[test]"])
    elif args.command == "test":
        print("🧪 Running tests...")
        ok = run(["uv", "run", "pytest"])
    elif args.command == "start":
        if not check_environment():
            sys.exit(1)
        print(f"🚀 Starting RAG API on {args.host}:{args.port}")
        cmd = ["uv", "run", "uvicorn", "rag_backend.api.main:app", "--host", args.host, "--port", str(args.port)]
        if not args.no_reload:
            cmd.append("--reload")
        try:
            ok = run(cmd)
        except KeyboardInterrupt:
            print("\n🛑 Server stopped")
            ok = True
    elif not args.args:
        parser.error(f"{args.command} needs at least one argument")
    elif args.command == "ingest":
        ok = ingest_files(args.url, args.args)
    else:
        ok = post(args.url, "/api/embeddings/query", {"query": " ".join(args.args)})

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
