"""Generate a batch of questions from the command line and print it as JSON"""
import argparse
import asyncio
import json

from dotenv import load_dotenv

from generation.orchestrator import GenerationOrchestrator
from generation.provider_client import build_providers
from generation.settings import get_settings
from question_bank.selector import select


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("subject", help="e.g. math, physics, chemistry, biology")
    parser.add_argument("-n", "--count", type=int, default=5)
    parser.add_argument("-o", "--objective", default=None)
    parser.add_argument("-d", "--difficulty", choices=["easy", "medium", "hard"], default="medium")
    parser.add_argument("--offline", action="store_true", help="select from the offline bank only")
    return parser.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)

    if args.offline:
        result = select(subject=args.subject, objective=args.objective, count=args.count)
        print(json.dumps(result.model_dump(), indent=2, ensure_ascii=False))
        return

    settings = get_settings()
    providers = build_providers(settings)
    orchestrator = GenerationOrchestrator(providers, settings)
    try:
        batch = await orchestrator.generate(args.subject, args.count, args.objective, args.difficulty)
        print(json.dumps(batch.model_dump(), indent=2, ensure_ascii=False))
    finally:
        for provider in providers:
            await provider.aclose()


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
