import asyncio

from execution_policy import CircuitOpenError, PolicyBuilder, RetryOptions


async def always_fails() -> int:
    raise RuntimeError("service unavailable")


async def main() -> None:
    builder = (
        PolicyBuilder()
        .retry(RetryOptions(max_attempts=2, base_delay=0.0))
        .circuit_breaker(failure_threshold=1, reset_timeout=30.0)
        .timeout(0.5)
    )

    try:
        await builder.debug_execute(always_fails, print)
    except RuntimeError as e:
        print(f"failed: {e}")

    # the copy shares the breaker, which is now open
    try:
        await builder.copy().debug_execute(always_fails, print)
    except CircuitOpenError as e:
        print(f"rejected: {e}")


if __name__ == "__main__":
    asyncio.run(main())
