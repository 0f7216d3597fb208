import logging

from fastapi import FastAPI

from fitassess.database import init_db
from fitassess.routers import assessment as assessment_router, auth as auth_router, templates as templates_router
from fitassess.utils.template_loader import get_registry

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Fit Assessments")
init_db()

# каталог проверяем при старте: битый шаблон не должен всплыть посреди оценки
get_registry()

app.include_router(auth_router.router)
app.include_router(templates_router.router)
app.include_router(assessment_router.router)


@app.get("/health")
def health():
    return {"status": "ok", "templates": len(get_registry())}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fitassess.main:app", host="127.0.0.1", port=8000, reload=True)
