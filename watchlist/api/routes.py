from fastapi import APIRouter, HTTPException, Request

from watchlist.schemas.watchlist import RunResult

router = APIRouter()


def _service(request: Request):
    service = getattr(request.app.state, 'refresh_service', None)
    if service is None:
        raise HTTPException(status_code=503, detail='REFRESH_SERVICE_NOT_READY')
    return service


def _latest_or_404(request: Request) -> RunResult:
    run = _service(request).latest()
    if run is None:
        raise HTTPException(status_code=404, detail='no watchlist run yet')
    return run


@router.get('/health')
def health(request: Request):
    service = getattr(request.app.state, 'refresh_service', None)
    return {'ok': True, 'has_run': bool(service and service.latest() is not None)}


@router.get('/watchlists')
def get_combined(request: Request):
    run = _latest_or_404(request)
    return {
        'symbols': list(run.combined),
        'count': len(run.combined),
        'metadata': run.metadata.model_dump(mode='json'),
    }


@router.get('/watchlists/{source}')
def get_source(source: str, request: Request):
    run = _latest_or_404(request)
    result = run.results.get(source.strip().lower())
    if result is None:
        raise HTTPException(status_code=404, detail='source not configured')
    return {
        'source': result.source_id.upper(),
        'symbols': list(result.symbols),
        'count': len(result.symbols),
        'diagnostics': list(result.diagnostics),
    }


@router.get('/meta')
def get_meta(request: Request):
    return _latest_or_404(request).metadata.model_dump(mode='json')


@router.post('/watchlists/refresh')
def refresh(request: Request):
    service = _service(request)
    try:
        run = service.refresh_once()
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f'WRITE_FAILED: {exc}') from exc
    return {
        'combined_count': len(run.combined),
        'counts': {source_id.upper(): len(r.symbols) for source_id, r in run.results.items()},
        'files': list(run.metadata.files),
        'generated_at': run.metadata.generated_at,
    }


@router.get('/metrics/refresh')
def refresh_metrics(request: Request):
    return _service(request).metrics()
