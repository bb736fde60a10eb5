from __future__ import annotations

from typing import List, Optional

from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from catalog import (
    ENUM_FIELDS,
    FIELD_ATTRIBUTES,
    FIELD_LABELS,
    format_byte_size,
    is_previewable,
)
from models import StagedFile
from services.submission import Notification, SubmissionController
from staging import StagingStore
from .previews import PreviewRegistry

WIDGET_TEMPLATE = "widget.html"
PREVIEW_ROUTE = "/staging/previews/{token}"

PLACEHOLDERS = {
    "documentTitle": "Enter document title",
    "documentAuthor": "Enter author name",
}


class SelectFieldView(BaseModel):
    field: str
    label: str
    options: List[str]
    selected: str


class TextFieldView(BaseModel):
    field: str
    label: str
    value: str
    placeholder: str = ""


class FileItemView(BaseModel):
    id: str
    name: str
    size: str
    selects: List[SelectFieldView]
    inputs: List[TextFieldView]
    preview_url: Optional[str] = None


class SubmitView(BaseModel):
    disabled: bool
    label: str
    busy: bool = False


class NotificationView(BaseModel):
    kind: str
    text: str


class WidgetView(BaseModel):
    status: Optional[str] = None
    items: List[FileItemView] = Field(default_factory=list)
    submit: SubmitView
    notification: Optional[NotificationView] = None
    reset_input: bool = False


def status_line(count: int) -> Optional[str]:
    if count == 0:
        return None
    return "1 file ready" if count == 1 else f"{count} files ready"


class Renderer:
    """Строит модель представления из снимка хранилища и рендерит её в HTML."""

    def __init__(self, templates: Jinja2Templates, previews: PreviewRegistry) -> None:
        self.templates = templates
        self.previews = previews

    def build_view(self, store: StagingStore, controller: SubmissionController) -> WidgetView:
        """Модель для перерисовки виджета.

        Прежние ссылки на превью отзываются и выдаются новые, одноразовое
        уведомление считается показанным.
        """
        self.previews.revoke_all()
        reset_input = controller.reset_input
        notification = controller.consume_notification()
        return self._view(store, controller, notification, reset_input, previews=True)

    def snapshot(self, store: StagingStore, controller: SubmissionController) -> WidgetView:
        """То же состояние, но без побочных эффектов.

        Токены превью и уведомление не трогаются, поэтому ``preview_url``
        здесь всегда пуст: ссылки выдаёт только перерисовка.
        """
        return self._view(
            store,
            controller,
            controller.notification,
            controller.reset_input,
            previews=False,
        )

    def render(self, view: WidgetView) -> str:
        template = self.templates.get_template(WIDGET_TEMPLATE)
        return template.render(view=view)

    def _view(
        self,
        store: StagingStore,
        controller: SubmissionController,
        notification: Optional[Notification],
        reset_input: bool,
        previews: bool,
    ) -> WidgetView:
        files = store.list()
        return WidgetView(
            status=status_line(len(files)),
            items=[self._item(staged, previews) for staged in files],
            submit=SubmitView(
                disabled=controller.submit_disabled,
                label=controller.submit_label,
                busy=controller.is_submitting,
            ),
            notification=(
                NotificationView(kind=notification.kind, text=notification.text)
                if notification
                else None
            ),
            reset_input=reset_input,
        )

    def _item(self, staged: StagedFile, previews: bool) -> FileItemView:
        selects = [
            SelectFieldView(
                field=field,
                label=FIELD_LABELS[field],
                options=list(options),
                selected=getattr(staged, FIELD_ATTRIBUTES[field]),
            )
            for field, options in ENUM_FIELDS.items()
        ]
        inputs = [
            TextFieldView(
                field=field,
                label=FIELD_LABELS[field],
                value=getattr(staged, FIELD_ATTRIBUTES[field]),
                placeholder=placeholder,
            )
            for field, placeholder in PLACEHOLDERS.items()
        ]
        preview_url = None
        if previews and is_previewable(staged.name):
            token = self.previews.create(staged.handle)
            preview_url = PREVIEW_ROUTE.format(token=token)
        return FileItemView(
            id=staged.id,
            name=staged.name,
            size=format_byte_size(staged.size),
            selects=selects,
            inputs=inputs,
            preview_url=preview_url,
        )
