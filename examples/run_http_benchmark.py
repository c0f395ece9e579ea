"""
Drive two rounds of JSON POSTs against an HTTP service.
Run: uv run examples/run_http_benchmark.py
"""
import asyncio
import os
import random

from ledgerbench import Config, Engine, WorkloadModuleBase
from ledgerbench.config import Keys
from ledgerbench.connectors import http_connector_factory
from ledgerbench.logging_config import setup_logging

BASE_URL = os.getenv("BENCH_TARGET_URL", "https://httpbin.org")


class TransferWorkload(WorkloadModuleBase):
    async def submit_transaction(self):
        amount = random.randint(1, int(self.round_arguments.get("max_amount", 100)))
        return await self.connector.send_requests(
            {"path": "/post", "json": {"worker": self.worker_index, "amount": amount}}
        )


BENCHMARK = {
    "test": {
        "workers": {"number": 2},
        "rounds": [
            {
                "label": "warmup",
                "txNumber": 20,
                "rateControl": {"type": "fixed-rate", "opts": {"tps": 5}},
                "workload": {"module": TransferWorkload, "arguments": {"max_amount": 10}},
            },
            {
                "label": "ramp",
                "txDuration": 10,
                "rateControl": {"type": "linear-rate", "opts": {"startingTps": 2, "finishingTps": 10}},
                "workload": {"module": TransferWorkload},
            },
        ],
    }
}


async def main():
    setup_logging(use_rich=True)
    config = Config.from_env()
    config.set(Keys.PROGRESS_BAR, True)
    # No local network to start or tear down
    config.set(Keys.FLOW_SKIP_START, True)
    config.set(Keys.FLOW_SKIP_END, True)

    engine = Engine(
        BENCHMARK,
        {},
        http_connector_factory(BASE_URL, request_timeout_s=10, health_path="/get"),
        config=config,
    )
    code = await engine.run()
    for stats in engine.round_orchestrator.round_results if engine.round_orchestrator else []:
        print("\nStats:", stats)
    raise SystemExit(code)


if __name__ == "__main__":
    asyncio.run(main())
