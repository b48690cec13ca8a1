"""Command-line entry point: ``python -m adapter_runtime``.

Configuration comes from ``ADAPTER_*`` environment variables; ``--base-url``
overrides ``ADAPTER_BASE_URL``.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from adapter_runtime.core.config import AdapterConfig
from adapter_runtime.core.exceptions import AdapterRuntimeError
from adapter_runtime.core.registry import ADAPTER_REGISTRY
from adapter_runtime.core.types import HealthStatus
from adapter_runtime.infra.telemetry import init_tracing, setup_logging
from adapter_runtime.services.client import AdapterClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adapter-runtime", description="Call and monitor remote adapters"
    )
    parser.add_argument("--base-url", help="Adapter service URL (default: $ADAPTER_BASE_URL)")
    parser.add_argument("--log-level", default="WARNING", help="Log level for stderr output")
    parser.add_argument("--trace", action="store_true", help="Export OpenTelemetry spans to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("adapters", help="List registered adapters")
    sub.add_parser("health", help="Probe every adapter once and print system health")

    run = sub.add_parser("run", help="Invoke a single adapter")
    run.add_argument("adapter_id")
    run.add_argument("--input", default=None, help="Text input for the adapter")
    run.add_argument("--context", default="{}", help="Context as a JSON object")
    return parser


async def _health(config: AdapterConfig) -> int:
    async with AdapterClient(config) as client:
        snapshot = await client.check_health()
    print(json.dumps(snapshot.to_dict(), indent=2))
    return 1 if snapshot.status == HealthStatus.UNHEALTHY else 0


async def _run(config: AdapterConfig, adapter_id: str, text: str | None, context: dict) -> int:
    async with AdapterClient(config) as client:
        result = await client.call_adapter(adapter_id, text, context)
    print(json.dumps(result.to_dict(), indent=2))
    return 1 if result.is_error else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    if args.command == "adapters":
        for adapter_id, adapter_type in ADAPTER_REGISTRY.items():
            print(f"{adapter_id}\t{adapter_type.value}")
        return 0

    overrides = {"base_url": args.base_url} if args.base_url else {}
    provider = init_tracing() if args.trace else None
    try:
        config = AdapterConfig.from_env(**overrides)
        if args.command == "health":
            return asyncio.run(_health(config))

        context = json.loads(args.context)
        if not isinstance(context, dict):
            print("--context must be a JSON object", file=sys.stderr)
            return 2
        return asyncio.run(_run(config, args.adapter_id, args.input, context))
    except json.JSONDecodeError as exc:
        print(f"Invalid --context JSON: {exc}", file=sys.stderr)
        return 2
    except AdapterRuntimeError as exc:
        print(exc.detail, file=sys.stderr)
        return 2
    finally:
        if provider is not None:
            provider.shutdown()


if __name__ == "__main__":
    sys.exit(main())
