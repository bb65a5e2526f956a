"""
Example: Streaming with Monitoring

This example streams a reply two ways (async iteration and callbacks),
then prints what the shared registry recorded about the calls.
"""

import asyncio

from dotenv import load_dotenv

from ai_dispatch import MonitoringService, ResilienceRegistry
from ai_dispatch.models import ConversationMessage, ProviderConfig, StreamCallbacks, TurnRole
from ai_dispatch.providers import ProviderFactory


async def example_async_iteration(provider):
    """Consume the stream chunk by chunk."""
    print("=== Async Iteration ===\n")

    messages = [ConversationMessage(role=TurnRole.USER, content="Write a haiku about Python")]
    async for chunk in provider.stream(messages, "You are a poet."):
        print(chunk, end='', flush=True)
    print("\n")


async def example_callbacks(provider):
    """Deliver the same kind of stream through callbacks."""
    print("=== Callbacks ===\n")

    callbacks = StreamCallbacks(
        on_token=lambda chunk: print(chunk, end='', flush=True),
        on_complete=lambda text: print(f"\n\n[{len(text)} characters]"),
        on_error=lambda error: print(f"\n[stream failed: {error}]"),
    )
    await provider.stream_message(
        [{"role": "user", "content": "Count from 1 to 5"}], "", callbacks
    )


def print_metrics(registry):
    print("\n=== Recorded Metrics ===\n")
    service = MonitoringService(registry)
    for name, exported in service.get_performance_metrics().items():
        overall = exported["overall"]
        print(f"{name}: {overall['total_requests']} requests, "
              f"p50 {overall['p50_duration']:.2f}s, success rate {overall['success_rate']:.0%}")
    for name, stats in service.get_circuit_breaker_status().items():
        print(f"{name}: circuit {stats['state']}")


async def main():
    load_dotenv()
    registry = ResilienceRegistry.from_env()
    provider = ProviderFactory.create(ProviderConfig.from_env("claude"), registry)

    await example_async_iteration(provider)
    await example_callbacks(provider)
    print_metrics(registry)


if __name__ == "__main__":
    asyncio.run(main())
