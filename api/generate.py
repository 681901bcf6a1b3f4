# api/generate.py
from time import time
from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from models import GenerateIn, GenerateOut, GenerationMode, TwoFieldsIn, TwoFieldsOut
from rng.result import Err, Failure

router = APIRouter()

HTTP_STATUS = {
    Failure.INSUFFICIENT_RANGE: 400,
    Failure.INSUFFICIENT_ENTROPY: 503,
}

def error_response(err: Err) -> JSONResponse:
    return JSONResponse(status_code=HTTP_STATUS[err.reason],
                        content={"error": err.message, "reason": err.reason.value})

def _draw_id(given: str | None) -> str:
    return given or f"gen-{int(time() * 1000)}"

@router.post("/generate", response_model=GenerateOut)
async def generate(request: Request, body: GenerateIn = Body(...)):
    if body.min > body.max:
        return JSONResponse(status_code=400, content={"error": "min must be <= max"})
    res = await request.app.state.draws.generate(_draw_id(body.draw_id), body)
    if isinstance(res, Err):
        return error_response(res)
    return res.value

@router.post("/generate/two-fields", response_model=TwoFieldsOut)
async def generate_two_fields(request: Request, body: TwoFieldsIn = Body(...)):
    if body.mode is GenerationMode.HYBRID:
        return JSONResponse(status_code=400, content={"error": "two-field generation supports pure and weighted modes"})
    res = await request.app.state.draws.generate_two_fields(_draw_id(body.draw_id), body)
    if isinstance(res, Err):
        return error_response(res)
    return res.value
