from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _load(path: str) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Challenge Network Reconciler CLI")
    p.add_argument("--api", default="http://localhost:8000", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_rec = sub.add_parser("reconcile", help="Run one reconcile pass for a challenge")
    s_rec.add_argument("--namespace", default="default")
    s_rec.add_argument("--name", required=True)
    s_rec.add_argument("--uid", required=True, help="uid of the Challenge object (owner reference)")
    s_rec.add_argument("--file", required=True, help="JSON file with the challenge spec")

    s_dep = sub.add_parser("deployment", help="Render the deployment with the healthcheck sidecar")
    s_dep.add_argument("--namespace", default="default")
    s_dep.add_argument("--name", required=True)
    s_dep.add_argument("--file", required=True, help="JSON file with the challenge spec")

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)
    s_ev.add_argument("--challenge")
    s_ev.add_argument("--namespace")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "reconcile":
        payload = {"uid": args.uid, "spec": _load(args.file)}
        r = requests.post(f"{base}/challenges/{args.namespace}/{args.name}/reconcile", json=payload, timeout=60)
        body = r.json()
        _print(body)
        return 0 if r.ok and not body.get("error") else 1

    if args.cmd == "deployment":
        r = requests.post(f"{base}/challenges/{args.namespace}/{args.name}/deployment", json=_load(args.file), timeout=30)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "events":
        params = {"limit": args.limit}
        if args.challenge:
            params["challenge"] = args.challenge
        if args.namespace:
            params["namespace"] = args.namespace
        _print(requests.get(f"{base}/events", params=params, timeout=10).json())
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
