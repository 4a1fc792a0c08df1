import asyncio
import json
import sys

from services.router import route_text

DEFAULT_TEXT = "I had a great dinner with Rita yesterday which cost me around 5,600 rupees"


async def main(user_text: str):
    decision = await route_text(user_text, user_id="demo-user")
    print("Determined route:", decision.routed_to.value)
    print("Endpoint:", decision.endpoint)
    print(json.dumps(decision.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    text = " ".join(sys.argv[1:]) or DEFAULT_TEXT
    if sys.platform.startswith("win"):
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main(text))
