import asyncio

from execution_policy import PolicyBuilder, RetryOptions


class FlakyService:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def fetch(self) -> str:
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise ConnectionError(f"call {self.calls} refused")
        return "payload"


async def cached() -> str:
    return "cached payload"


def on_error(exc, tb, attempt):
    print(f"attempt {attempt} failed: {exc}")


async def main() -> None:
    builder = (
        PolicyBuilder()
        .fallback(cached)
        .timeout(1.0)
        .retry(
            RetryOptions.EXPONENTIAL.copy_with(max_attempts=3, base_delay=0.01),
            retry_if=lambda e: isinstance(e, ConnectionError),
            on_error=on_error,
        )
    )

    service = FlakyService(failures=2)
    print(f"result: {await builder.execute(service.fetch)}")

    broken = FlakyService(failures=10)
    print(f"result: {await builder.execute(broken.fetch)}")


if __name__ == "__main__":
    asyncio.run(main())
