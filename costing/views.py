import json
import logging

from django.conf import settings
from django.http import Http404, JsonResponse
from django.shortcuts import render
from django.views.decorators.http import require_http_methods, require_POST

from .app_settings import load_settings, normalize_settings, save_settings
from .bom_resolver import (
    BomInUseError,
    check_bom_deletable,
    compute_bom_cost_map,
    reindex_lines,
    would_create_cycle,
)
from .costing_engine import compute_totals, make_blank_sheet, touch
from .demo_data import seed_demo_data
from .formatting import format_cents
from .money import make_id, parse_iso
from .normalizers import (
    normalize_sheet,
    parse_bom_records,
    parse_material_records,
    parse_purchase_records,
    sort_materials_by_name,
    sort_purchases_by_date_desc,
)
from .services.import_pipeline import validate_and_normalize
from .services.import_sanitizer import IMPORT_MODES
from .services.material_import import materials_from_tsv
from .services.purchase_import import purchases_from_tsv
from .state import RECORD_STORE, RecordNotFoundError, WriteCoalescer

logger = logging.getLogger(__name__)

GUEST_OWNER = "guest"

SHEET_WRITES = WriteCoalescer(RECORD_STORE, settings.COSTING["WRITE_COALESCE_SECONDS"])


def _owner(request) -> str:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return f"user:{user.pk}"
    return GUEST_OWNER


def _error(reason: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"ok": False, "reason": reason}, status=status)


def _json_body(request):
    try:
        return json.loads(request.body.decode("utf-8") or "null")
    except (UnicodeDecodeError, ValueError) as exc:
        raise ValueError("Request body must be valid JSON.") from exc


def _import_text(request) -> str:
    if request.content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        return request.POST.get("text") or ""
    return request.body.decode("utf-8", errors="replace")


def _import_mode(request) -> str:
    mode = request.GET.get("mode") or settings.COSTING["IMPORT_MODE"]
    if mode not in IMPORT_MODES:
        raise ValueError(f"mode must be one of: {', '.join(IMPORT_MODES)}.")
    return mode


@require_POST
def import_validate_view(request):
    try:
        mode = _import_mode(request)
    except ValueError as exc:
        return _error(str(exc))

    result = validate_and_normalize(_import_text(request), mode)
    return JsonResponse(result.to_dict(), status=200 if result.ok else 400)


@require_POST
def purchase_import_view(request):
    """Validate pasted purchases, build records and optionally save them."""
    try:
        mode = _import_mode(request)
    except ValueError as exc:
        return _error(str(exc))

    validation = validate_and_normalize(_import_text(request), mode)
    if not validation.ok:
        return JsonResponse(validation.to_dict(), status=400)

    owner = _owner(request)
    app_settings = load_settings(RECORD_STORE, owner, settings.COSTING["DEFAULT_CURRENCY"])
    materials = parse_material_records(RECORD_STORE.list(owner, "materials"))
    result = purchases_from_tsv(
        validation.tsv,
        materials=materials,
        currency=app_settings.base_currency,
        date_format=app_settings.date_format,
    )
    if not result.ok:
        return _error(result.reason)

    imported = [record.to_dict() for record in result.records]
    saved_count = 0
    if request.GET.get("commit") == "1":
        for record in imported:
            RECORD_STORE.insert(owner, "purchases", record)
        saved_count = len(imported)
        logger.info("Imported %d purchases for %s", saved_count, owner)

    return JsonResponse(
        {
            "ok": True,
            "message": validation.message,
            "convertedFromCsv": validation.converted_from_csv,
            "records": imported,
            "savedCount": saved_count,
            "warnings": result.warnings,
        }
    )


@require_http_methods(["GET"])
def purchase_list_view(request):
    owner = _owner(request)
    purchases = sort_purchases_by_date_desc(parse_purchase_records(RECORD_STORE.list(owner, "purchases")))
    return JsonResponse({"ok": True, "purchases": [p.to_dict() for p in purchases]})


@require_POST
def sheet_totals_view(request):
    try:
        payload = _json_body(request)
    except ValueError as exc:
        return _error(str(exc))

    sheet = normalize_sheet(payload)
    if sheet is None:
        return _error("A cost sheet object with an id is required.")

    totals = compute_totals(sheet)
    formatted = {
        key: format_cents(value, sheet.currency) if value is not None else None
        for key, value in totals.to_dict().items()
        if key.endswith("Cents")
    }
    return JsonResponse({"ok": True, "sheet": sheet.to_dict(), "totals": totals.to_dict(), "formatted": formatted})


@require_POST
def bom_costs_view(request):
    try:
        payload = _json_body(request)
    except ValueError as exc:
        return _error(str(exc))
    if not isinstance(payload, dict):
        return _error("Expected an object with 'boms' and 'materials'.")

    boms = parse_bom_records(payload.get("boms"))
    materials = parse_material_records(payload.get("materials"))
    costs = compute_bom_cost_map(boms, materials)
    return JsonResponse({"ok": True, "costs": {bom_id: result.to_dict() for bom_id, result in costs.items()}})


@require_http_methods(["GET", "POST"])
def settings_view(request):
    owner = _owner(request)
    if request.method == "GET":
        return JsonResponse({"ok": True, "settings": load_settings(RECORD_STORE, owner, settings.COSTING["DEFAULT_CURRENCY"]).to_dict()})

    try:
        payload = _json_body(request)
    except ValueError as exc:
        return _error(str(exc))
    saved = save_settings(RECORD_STORE, owner, normalize_settings(payload))
    return JsonResponse({"ok": True, "settings": saved.to_dict()})


@require_http_methods(["GET"])
def material_list_view(request):
    owner = _owner(request)
    materials = sort_materials_by_name(parse_material_records(RECORD_STORE.list(owner, "materials")))
    return JsonResponse({"ok": True, "materials": [m.to_dict() for m in materials]})


@require_POST
def material_import_view(request):
    try:
        mode = _import_mode(request)
    except ValueError as exc:
        return _error(str(exc))

    validation = validate_and_normalize(_import_text(request), mode)
    if not validation.ok:
        return JsonResponse(validation.to_dict(), status=400)

    owner = _owner(request)
    existing = parse_material_records(RECORD_STORE.list(owner, "materials"))
    result = materials_from_tsv(validation.tsv, existing=existing)
    if not result.ok:
        return _error(result.reason)

    imported = [record.to_dict() for record in result.records]
    if request.GET.get("commit") == "1":
        for record in imported:
            RECORD_STORE.insert(owner, "materials", record)
        logger.info("Imported %d materials for %s", len(imported), owner)

    return JsonResponse({"ok": True, "records": imported, "warnings": result.warnings})


@require_http_methods(["GET", "POST"])
def sheet_list_view(request):
    """GET lists saved sheets; POST creates a blank sheet from the user's defaults."""
    owner = _owner(request)
    if request.method == "POST":
        app_settings = load_settings(RECORD_STORE, owner, settings.COSTING["DEFAULT_CURRENCY"])
        sheet = make_blank_sheet(make_id("sheet"), app_settings)
        RECORD_STORE.insert(owner, "sheets", sheet.to_dict())
        return JsonResponse({"ok": True, "sheet": sheet.to_dict()}, status=201)

    SHEET_WRITES.flush()
    sheets = [sheet for sheet in map(normalize_sheet, RECORD_STORE.list(owner, "sheets")) if sheet]
    return JsonResponse({"ok": True, "sheets": [sheet.to_dict() for sheet in sheets], "pending": SHEET_WRITES.pending_count()})


@require_POST
def sheet_save_view(request, sheet_id):
    """Queue an edit; rapid edits to one sheet collapse into the last one."""
    SHEET_WRITES.flush()
    try:
        payload = _json_body(request)
    except ValueError as exc:
        return _error(str(exc))
    if isinstance(payload, dict):
        payload = {**payload, "id": sheet_id}

    sheet = normalize_sheet(payload)
    if sheet is None:
        return _error("A cost sheet object is required.")

    owner = _owner(request)
    touch(sheet)
    SHEET_WRITES.schedule(owner, "sheets", sheet.to_dict())
    if request.GET.get("flush") == "1":
        SHEET_WRITES.flush(force=True)
    return JsonResponse({"ok": True, "sheet": sheet.to_dict(), "totals": compute_totals(sheet).to_dict()}, status=202)


@require_http_methods(["GET"])
def sheet_summary_view(request, sheet_id):
    """Printable cost breakdown of one saved sheet."""
    SHEET_WRITES.flush()
    sheet = normalize_sheet(RECORD_STORE.get(_owner(request), "sheets", sheet_id))
    if sheet is None:
        raise Http404(f"Sheet {sheet_id} was not found.")

    context = {"sheet": sheet, "totals": compute_totals(sheet)}
    return render(request, "costing/sheet_summary.html", context)


@require_POST
def demo_seed_view(request):
    owner = _owner(request)
    counts = seed_demo_data(RECORD_STORE, owner)
    logger.info("Seeded demo data for %s", owner)
    return JsonResponse({"ok": True, "seeded": counts})


def _stored_boms(owner: str):
    return parse_bom_records(RECORD_STORE.list(owner, "boms"))


@require_http_methods(["GET", "POST"])
def bom_list_view(request):
    owner = _owner(request)
    if request.method == "GET":
        boms = sorted(_stored_boms(owner), key=lambda bom: parse_iso(bom.updated_at), reverse=True)
        materials = parse_material_records(RECORD_STORE.list(owner, "materials"))
        costs = compute_bom_cost_map(boms, materials)
        return JsonResponse(
            {
                "ok": True,
                "boms": [bom.to_dict() for bom in boms],
                "costs": {bom_id: result.to_dict() for bom_id, result in costs.items()},
            }
        )

    try:
        payload = _json_body(request)
    except ValueError as exc:
        return _error(str(exc))
    parsed = parse_bom_records([payload])
    if not parsed:
        return _error("A BOM object is required.")
    bom = parsed[0]
    bom.lines = reindex_lines(bom.lines)

    boms_by_id = {existing.id: existing for existing in _stored_boms(owner) if existing.id != bom.id}
    for line in bom.lines:
        if line.component_type != "bom_item" or not line.component_bom_id:
            continue
        if line.component_bom_id == bom.id or would_create_cycle(bom.id, line.component_bom_id, boms_by_id):
            return _error(f"Line {line.id} would make {bom.name} contain itself.", status=409)

    touch(bom)
    RECORD_STORE.upsert(owner, "boms", bom.to_dict())
    return JsonResponse({"ok": True, "bom": bom.to_dict()})


@require_http_methods(["DELETE"])
def bom_delete_view(request, bom_id):
    owner = _owner(request)
    try:
        check_bom_deletable(bom_id, _stored_boms(owner))
        RECORD_STORE.delete(owner, "boms", bom_id)
    except BomInUseError as exc:
        return JsonResponse({"ok": False, "reason": str(exc), "referencedBy": exc.referenced_by}, status=409)
    except RecordNotFoundError as exc:
        return _error(str(exc), status=404)
    return JsonResponse({"ok": True})
