"""CLI entry point for AI Dispatch."""

import argparse
import asyncio
import json
import sys
from typing import Optional

from dotenv import load_dotenv

from .models.conversation_types import ConversationMessage, RequestOptions, TurnRole
from .models.provider_config import ProviderConfig
from .models.streaming import StreamCallbacks
from .monitoring.health import HealthCheckService
from .providers.factory import ProviderFactory
from .registry import ResilienceRegistry


def _build_provider(provider: str, model: Optional[str], registry: ResilienceRegistry):
    config = ProviderConfig.from_env(provider, model=model)
    return ProviderFactory.create(config, registry)


def _options(args) -> Optional[RequestOptions]:
    values = {}
    if args.max_tokens:
        values['max_tokens'] = args.max_tokens
    if args.temperature is not None:
        values['temperature'] = args.temperature
    return RequestOptions(**values) if values else None


async def send_message(args, stream: bool = False) -> int:
    """Send one prompt and print the reply."""
    registry = ResilienceRegistry.from_env()
    messages = [ConversationMessage(role=TurnRole.USER, content=args.prompt)]
    try:
        async with _build_provider(args.provider, args.model, registry) as provider:
            if stream:
                print(f"Streaming response from {args.provider} ({provider.get_model()}):\n")
                await provider.stream_message(
                    messages,
                    args.system,
                    StreamCallbacks(on_token=lambda chunk: print(chunk, end='', flush=True)),
                    _options(args)
                )
                print()
            else:
                text = await provider.send_message(messages, args.system, _options(args))
                print(f"Response from {args.provider} ({provider.get_model()}):\n")
                print(text)
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1
    return 0


async def validate(args) -> int:
    registry = ResilienceRegistry.from_env()
    try:
        async with _build_provider(args.provider, args.model, registry) as provider:
            valid = await provider.validate_api_key()
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1
    print(f"{args.provider}: {'valid' if valid else 'invalid'} credentials")
    return 0 if valid else 1


async def health(args) -> int:
    credentials = {}
    for name in ProviderFactory.get_supported_providers():
        try:
            credentials[name] = ProviderConfig.from_env(name)
        except ValueError:
            continue

    async with HealthCheckService(credentials, timeout=args.timeout) as service:
        result = await service.check_all()
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0


def _add_message_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('provider', choices=ProviderFactory.get_supported_providers(),
                        help='Provider name')
    parser.add_argument('prompt', help='Text prompt')
    parser.add_argument('--system', default='', help='System prompt')
    parser.add_argument('--model', help='Model identifier (defaults per provider)')
    parser.add_argument('--max-tokens', type=int, help='Maximum tokens to generate')
    parser.add_argument('--temperature', type=float, help='Temperature (0.0-2.0)')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI Dispatch CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    send_parser = subparsers.add_parser('send', help='Send a prompt and print the reply')
    _add_message_arguments(send_parser)

    stream_parser = subparsers.add_parser('stream', help='Stream the reply to a prompt')
    _add_message_arguments(stream_parser)

    validate_parser = subparsers.add_parser('validate', help='Check a provider credential')
    validate_parser.add_argument('provider', choices=ProviderFactory.get_supported_providers())
    validate_parser.add_argument('--model', help='Model used for the probe call')

    health_parser = subparsers.add_parser('health', help='Probe every configured provider')
    health_parser.add_argument('--timeout', type=float, default=10.0,
                               help='Per-probe timeout in seconds')
    return parser


def main(argv=None) -> int:
    """Main CLI function."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'send':
        return asyncio.run(send_message(args))
    elif args.command == 'stream':
        return asyncio.run(send_message(args, stream=True))
    elif args.command == 'validate':
        return asyncio.run(validate(args))
    elif args.command == 'health':
        return asyncio.run(health(args))

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
