"""Exception handlers that shape error responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

VALIDATION_DETAIL = "اطلاعات ارسالی نامعتبر است"
SERVER_ERROR_DETAIL = "خطای سرور"


FIELD_LABELS = {
    "title": "عنوان کتاب",
    "author": "نام نویسنده",
    "publisher": "نام ناشر",
    "genre": "ژانر",
    "translator": "نام مترجم",
    "note": "یادداشت",
    "priority": "اولویت",
    "coverImage": "تصویر جلد",
    "format": "نوع کتاب",
    "status": "وضعیت مطالعه",
    "progress": "میزان پیشرفت",
    "rating": "امتیاز",
    "pageCount": "تعداد صفحات",
    "description": "توضیحات",
    "country": "کشور",
    "review": "نقد",
    "content": "متن نقل قول",
    "bookId": "شناسه کتاب",
    "page": "شماره صفحه",
    "email": "ایمیل",
    "password": "رمز عبور",
    "name": "نام",
    "limit": "تعداد نتایج",
    "book_id": "شناسه کتاب",
    "quote_id": "شناسه نقل قول",
    "item_id": "شناسه آیتم",
}
DEFAULT_LABEL = "مقدار"

# Keyed by pydantic error type; formatted with the error's ctx plus label and field
MESSAGE_TEMPLATES = {
    "missing": "{label} الزامی است",
    "string_too_short": "{label} نمی‌تواند خالی باشد",
    "string_too_long": "{label} نمی‌تواند بیش از {max_length} کاراکتر باشد",
    "string_type": "{label} باید متن باشد",
    "enum": "{label} معتبر انتخاب کنید",
    "extra_forbidden": "فیلد «{field}» مجاز نیست",
    "int_parsing": "{label} باید عدد صحیح باشد",
    "int_type": "{label} باید عدد صحیح باشد",
    "int_from_float": "{label} باید عدد صحیح باشد",
    "greater_than_equal": "{label} نمی‌تواند کمتر از {ge} باشد",
    "less_than_equal": "{label} نمی‌تواند بیش از {le} باشد",
    "value_error": "{label} نمی‌تواند خالی باشد",
    "json_invalid": "بدنه درخواست JSON معتبر نیست",
    "model_attributes_type": "بدنه درخواست نامعتبر است",
    "dict_type": "بدنه درخواست نامعتبر است",
}
DEFAULT_TEMPLATE = "{label} نامعتبر است"


def validation_message(error: dict, field: str) -> str:
    """Persian message for a single pydantic error."""
    name = field.rsplit(".", 1)[-1]
    values = dict(error.get("ctx") or {})
    values.update(label=FIELD_LABELS.get(name, DEFAULT_LABEL), field=name)
    template = MESSAGE_TEMPLATES.get(error.get("type", ""), DEFAULT_TEMPLATE)
    try:
        return template.format_map(values)
    except (KeyError, IndexError):
        return DEFAULT_TEMPLATE.format_map(values)


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten validation errors into ``{field, message}`` pairs."""
    errors = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment
        field = ".".join(str(part) for part in error.get("loc", ())[1:])
        errors.append({"field": field, "message": validation_message(error, field)})
    return errors


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": VALIDATION_DETAIL, "errors": format_validation_errors(exc)},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error while handling {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": SERVER_ERROR_DETAIL},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the application's exception handlers."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
