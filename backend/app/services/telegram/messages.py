"""Bot message catalog (en / de / ar).

``render`` falls back to English for unknown languages or keys, and leaves
unknown placeholders untouched.
"""
DEFAULT_LANGUAGE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "status_active": "Active",
        "status_inactive": "Inactive",
        "welcome_back": "Welcome back, {name}!\nYour account status: {status}",
        "registered": (
            "Hello {first_name}! You have been registered in the task management system.\n\n"
            "User ID: {id}\n"
            "Name: {name}\n"
            "Telegram: @{username}\n\n"
            "New tasks will be sent to you here. You can accept or reject each task."
        ),
        "registration_failed": "Registration failed. Please try again later.",
        "help": (
            "Hello! Use the buttons to respond to tasks.\n\n"
            "If you have a problem, please contact the office."
        ),
        "task_new": (
            "New task #{task_number}\n\n"
            "Title: {title}\n"
            "Description: {description}\n"
            "Location: {location}\n"
            "Date: {date}\n"
            "Time: {time}"
        ),
        "button_accept": "Accept",
        "button_reject": "Reject",
        "button_complete": "Mark as completed",
        "task_accepted": "Task #{task_number} ({title}) accepted. Client details will follow.",
        "task_rejected": "Task #{task_number} ({title}) rejected. Thank you for your reply.",
        "task_completed": "Task #{task_number} ({title}) marked as completed. Thank you!",
        "task_unchanged": "Task #{task_number} is already {status}.",
        "task_not_found": "Task not found.",
        "task_transition_invalid": "Task #{task_number} cannot be updated while it is {status}.",
        "client_info": (
            "Client information\n\n"
            "Client: {client_name}\n"
            "Phone: {client_phone}\n"
            "Address: {location}\n"
            "Map: {map_url}\n\n"
            "{description}"
        ),
        "invoice": (
            "📄 *Invoice received*\n\n"
            "🧾 Invoice number: {invoice_number}\n"
            "💰 Amount: €{amount}\n"
            "👤 Client: {client_name}\n"
            "📅 Due date: {due_date}\n"
            "📊 Status: {status}\n\n"
            "Please hand the invoice to the client and collect the payment."
        ),
        "invoice_pdf_error": "Could not deliver invoice {file_name}: {error}",
        "error_generic": "Something went wrong. Please try again.",
    },
    "de": {
        "status_active": "Aktiv",
        "status_inactive": "Inaktiv",
        "welcome_back": "Willkommen zurück, {name}!\nIhr Kontostatus: {status}",
        "registered": (
            "Hallo {first_name}! Sie wurden im Auftragssystem registriert.\n\n"
            "Benutzer-ID: {id}\n"
            "Name: {name}\n"
            "Telegram: @{username}\n\n"
            "Neue Aufträge werden Ihnen hier zugeschickt. Sie können jeden Auftrag annehmen oder ablehnen."
        ),
        "registration_failed": "Registrierung fehlgeschlagen. Bitte versuchen Sie es später erneut.",
        "help": (
            "Hallo! Bitte nutzen Sie die Schaltflächen, um auf Aufträge zu reagieren.\n\n"
            "Bei Problemen wenden Sie sich bitte an das Büro."
        ),
        "task_new": (
            "Neuer Auftrag #{task_number}\n\n"
            "Titel: {title}\n"
            "Beschreibung: {description}\n"
            "Ort: {location}\n"
            "Datum: {date}\n"
            "Uhrzeit: {time}"
        ),
        "button_accept": "Annehmen",
        "button_reject": "Ablehnen",
        "button_complete": "Als erledigt markieren",
        "task_accepted": "Auftrag #{task_number} ({title}) angenommen. Die Kundendaten folgen.",
        "task_rejected": "Auftrag #{task_number} ({title}) abgelehnt. Danke für Ihre Rückmeldung.",
        "task_completed": "Auftrag #{task_number} ({title}) als erledigt markiert. Vielen Dank!",
        "task_unchanged": "Auftrag #{task_number} ist bereits {status}.",
        "task_not_found": "Auftrag nicht gefunden.",
        "task_transition_invalid": "Auftrag #{task_number} kann im Status {status} nicht geändert werden.",
        "client_info": (
            "Kundendaten\n\n"
            "Kunde: {client_name}\n"
            "Telefon: {client_phone}\n"
            "Adresse: {location}\n"
            "Karte: {map_url}\n\n"
            "{description}"
        ),
        "invoice": (
            "📄 *Rechnung erhalten*\n\n"
            "🧾 Rechnungsnummer: {invoice_number}\n"
            "💰 Betrag: €{amount}\n"
            "👤 Kunde: {client_name}\n"
            "📅 Fällig am: {due_date}\n"
            "📊 Status: {status}\n\n"
            "Bitte übergeben Sie die Rechnung dem Kunden und kassieren Sie den Betrag."
        ),
        "invoice_pdf_error": "Rechnung {file_name} konnte nicht zugestellt werden: {error}",
        "error_generic": "Ein Fehler ist aufgetreten. Bitte versuchen Sie es erneut.",
    },
    "ar": {
        "status_active": "نشط",
        "status_inactive": "غير نشط",
        "welcome_back": "مرحباً بعودتك يا {name}!\nحالة حسابك: {status}",
        "registered": (
            "مرحباً {first_name}! تم تسجيلك بنجاح في نظام إدارة المهام.\n\n"
            "معرف المستخدم: {id}\n"
            "الاسم: {name}\n"
            "معرف التليجرام: @{username}\n\n"
            "سيتم إرسال المهام الجديدة إليك هنا. يمكنك قبول أو رفض كل مهمة."
        ),
        "registration_failed": "حدث خطأ أثناء التسجيل. يرجى المحاولة مرة أخرى لاحقاً.",
        "help": (
            "مرحباً! استخدم الأزرار للتفاعل مع المهام.\n\n"
            "إذا كنت تواجه مشكلة، يرجى التواصل مع الإدارة."
        ),
        "task_new": (
            "مهمة جديدة #{task_number}\n\n"
            "العنوان: {title}\n"
            "الوصف: {description}\n"
            "الموقع: {location}\n"
            "التاريخ: {date}\n"
            "الوقت: {time}"
        ),
        "button_accept": "قبول",
        "button_reject": "رفض",
        "button_complete": "تم الإنجاز",
        "task_accepted": "تم قبول المهمة #{task_number} ({title}). ستصلك بيانات العميل قريباً.",
        "task_rejected": "تم رفض المهمة #{task_number} ({title}). شكراً لك على الرد.",
        "task_completed": "تم تأكيد إنجاز المهمة #{task_number} ({title}). شكراً لك!",
        "task_unchanged": "المهمة #{task_number} في حالة {status} بالفعل.",
        "task_not_found": "المهمة غير موجودة.",
        "task_transition_invalid": "لا يمكن تحديث المهمة #{task_number} وهي في حالة {status}.",
        "client_info": (
            "بيانات العميل\n\n"
            "العميل: {client_name}\n"
            "الهاتف: {client_phone}\n"
            "العنوان: {location}\n"
            "الخريطة: {map_url}\n\n"
            "{description}"
        ),
        "invoice": (
            "📄 *تم استلام فاتورة*\n\n"
            "🧾 رقم الفاتورة: {invoice_number}\n"
            "💰 المبلغ: €{amount}\n"
            "👤 العميل: {client_name}\n"
            "📅 تاريخ الاستحقاق: {due_date}\n"
            "📊 الحالة: {status}\n\n"
            "يرجى تسليم الفاتورة للعميل وتحصيل المبلغ."
        ),
        "invoice_pdf_error": "خطأ في إرسال الفاتورة {file_name}: {error}",
        "error_generic": "حدث خطأ. يرجى المحاولة مرة أخرى.",
    },
}


class _Params(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def render(language: str | None, key: str, **params) -> str:
    catalog = MESSAGES.get(language or DEFAULT_LANGUAGE, MESSAGES[DEFAULT_LANGUAGE])
    template = catalog.get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key, key)
    return template.format_map(_Params({k: "" if v is None else v for k, v in params.items()}))


MARKDOWN_SPECIAL = "_*`["


def escape_markdown(value) -> str:
    """Escape a value for Telegram's legacy ``Markdown`` parse mode."""
    text = "" if value is None else str(value)
    for char in MARKDOWN_SPECIAL:
        text = text.replace(char, f"\\{char}")
    return text
