"""
llmwire Python SDK - Streaming Example

Demonstrates streaming responses for real-time output.
"""

import asyncio
import os
import sys

from llmwire import (
    AsyncLLMWire,
    ContentBlockDeltaEvent,
    ErrorEvent,
    LLMWire,
    MessageCreateParams,
    MessageParam,
)
from llmwire.logging import setup_logging


def main():
    setup_logging(level="WARNING")
    client = LLMWire(api_key=os.environ["LLMWIRE_API_KEY"])

    params = MessageCreateParams(
        model="claude-sonnet-4-5",
        max_tokens=512,
        messages=[MessageParam.user("Tell me a short story about a robot")],
    )

    # ============================================================
    # Event-by-event streaming
    # ============================================================
    print("=== Streaming Events ===\n")

    sys.stdout.write("Response: ")
    with client.messages.stream(params) as stream:
        for event in stream:
            if isinstance(event, ContentBlockDeltaEvent):
                sys.stdout.write(event.delta.as_text() or "")
                sys.stdout.flush()
            elif isinstance(event, ErrorEvent):
                print(f"\n[Server error: {event.error.type}: {event.error.message}]")

    state = stream.state
    if stream.is_complete:
        print(f"\n[Finished: {state.stop_reason}, {state.output_tokens} output tokens]\n")
    else:
        print("\n[Stream ended early]\n")

    # ============================================================
    # Final message
    # ============================================================
    print("=== Final Message ===\n")

    with client.messages.stream(params) as stream:
        message = stream.get_final_message()
    print(f"id={message.id} stop_reason={message.stop_reason}")
    print(f"usage: {message.usage.input_tokens} in / {message.usage.output_tokens} out\n")

    client.close()


async def main_async():
    async with AsyncLLMWire(api_key=os.environ["LLMWIRE_API_KEY"]) as client:
        params = MessageCreateParams(
            model="claude-sonnet-4-5",
            max_tokens=100,
            messages=[MessageParam.user("Count from 1 to 10, one number per line")],
        )

        print("=== Async Streaming ===\n")
        stream = await client.messages.stream(params)
        async with stream:
            text = await stream.collect_text()
        print(text)


if __name__ == "__main__":
    main()
    asyncio.run(main_async())
