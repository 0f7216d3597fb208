import asyncio
import time

from fitassess.utils.template_loader import parse_template

# все видимые обязательные поля par_q_plus при ответах "No" (follow_up скрыт)
PAR_Q_COMPLETE = {
    "full_name": "Anna",
    "age": 40,
    "heartCondition": "No",
    "chestPain": "No",
    "dizziness": "No",
    "chronicCondition": "No",
    "medications": "No",
    "declaration_agree": True,
}


def make_template(sections, template_id="demo", title="Demo"):
    return parse_template({"id": template_id, "title": title, "sections": sections})


async def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("условие не выполнилось за отведённое время")
        await asyncio.sleep(0.005)
