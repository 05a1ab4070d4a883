from functools import wraps
from flask import Flask, render_template, request, redirect, session, send_from_directory, url_for
from sqlalchemy.exc import SQLAlchemyError
from dotenv import load_dotenv
import os

from tickets.auth import AuthError, SharedSecretChecker, authenticate
from tickets.filters import STATUS_ALL, filter_tickets, ticket_stats
from tickets.forms import DELETE_CONFIRM_MESSAGE, PHOTO_CONFIRM_MESSAGE, TicketDraft, TicketLifecycle, ValidationError
from tickets.models import COMPANIES, STATUS_LABELS, TECHNICIANS, TYPE_LABELS, db
from tickets.storage import THEME_KEY, TICKETS_KEY, DatabaseBackend, FileBackend, ThemePreference, TicketStore
from tickets.summary import DEFAULT_MODEL, SummaryRequester
from tickets.uploads import discard_photo, store_photo

load_dotenv()

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "it_ops_secret_key")
app.logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

raw_db_url = os.environ.get("DATABASE_URL", "sqlite:///it_tickets.db")
if raw_db_url.startswith("postgres://"):
    raw_db_url = raw_db_url.replace("postgres://", "postgresql://", 1)

if raw_db_url.startswith("postgresql://") and "sslmode=" not in raw_db_url:
    sep = "&" if "?" in raw_db_url else "?"
    raw_db_url = f"{raw_db_url}{sep}sslmode=require"

engine_options = {"pool_pre_ping": True, "pool_recycle": 280}
if raw_db_url.startswith("postgresql://"):
    engine_options["connect_args"] = {"connect_timeout": 10}

app.config["SQLALCHEMY_DATABASE_URI"] = raw_db_url
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options
app.config["UPLOAD_FOLDER"] = os.path.abspath(os.environ.get("UPLOAD_FOLDER", "uploads"))
app.config["TICKET_STRICT_ORDER"] = os.environ.get("TICKET_STRICT_ORDER", "").lower() in ("1", "true", "yes")

APP_NAME = "IT Operations Dashboard"
COMPANY_NAME = "SEMBILAN GRUOP"
SERVER_BUSY_MESSAGE = "Server sibuk. Silakan coba lagi."

VIEW_PUBLIC = "public"
VIEW_LOGIN = "login"
VIEW_ADMIN = "admin"

db.init_app(app)

if os.environ.get("TICKETS_FILE"):
    ticket_store = TicketStore(FileBackend(os.environ["TICKETS_FILE"]))
else:
    ticket_store = TicketStore(DatabaseBackend(TICKETS_KEY))
theme_preference = ThemePreference(DatabaseBackend(THEME_KEY))
credential_checker = SharedSecretChecker.from_env_value(os.environ.get("ADMIN_SECRETS"))
summary_requester = SummaryRequester(
    api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", ""),
    model=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
    timeout=float(os.environ.get("SUMMARY_TIMEOUT", "60")),
)


def init_db():
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as exc:
            # Keep the web process alive even if the DB is temporarily unreachable.
            app.logger.error("Database init failed at startup: %s", exc)


init_db()


def current_view():
    return session.get("view", VIEW_PUBLIC)


def require_admin(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if current_view() != VIEW_ADMIN:
            return redirect("/login")
        return view_func(*args, **kwargs)

    return wrapper


@app.context_processor
def inject_session_data():
    try:
        theme = theme_preference.get()
    except SQLAlchemyError:
        theme = "light"
    return {
        "app_name": APP_NAME,
        "company_name": COMPANY_NAME,
        "session_view": current_view(),
        "theme": theme,
        "status_labels": STATUS_LABELS,
        "type_labels": TYPE_LABELS,
    }


def render_dashboard(search="", status_filter=STATUS_ALL, ai_summary=None, error=None):
    try:
        tickets = ticket_store.read_all()
    except SQLAlchemyError as exc:
        app.logger.error("Failed to read tickets: %s", exc)
        tickets = []
        error = SERVER_BUSY_MESSAGE

    visible = filter_tickets(
        tickets,
        search=search,
        status_filter=status_filter,
        strict_order=app.config["TICKET_STRICT_ORDER"],
    )
    return render_template(
        "dashboard.html",
        tickets=visible,
        stats=ticket_stats(tickets),
        search=search,
        status_filter=status_filter,
        ai_summary=ai_summary,
        is_admin=current_view() == VIEW_ADMIN,
        delete_confirm_message=DELETE_CONFIRM_MESSAGE,
        error=error or request.args.get("error", ""),
        status_msg=request.args.get("status_msg", ""),
    )


def render_ticket_form(draft, editing=None, error=None, confirm_message=None):
    return render_template(
        "ticket_form.html",
        draft=draft,
        editing=editing,
        error=error,
        confirm_message=confirm_message,
        companies=COMPANIES,
        technicians=TECHNICIANS,
    )


@app.route("/")
def dashboard():
    if current_view() == VIEW_LOGIN:
        session["view"] = VIEW_PUBLIC
    return render_dashboard(
        search=request.args.get("q", "").strip(),
        status_filter=request.args.get("status", STATUS_ALL),
    )


@app.route("/login", methods=["GET", "POST"])
def login():
    if current_view() == VIEW_ADMIN:
        return redirect("/")

    session["view"] = VIEW_LOGIN
    if request.method == "POST":
        try:
            authenticate(credential_checker, request.form.get("password", ""))
        except AuthError as exc:
            app.logger.info("Rejected admin login from %s", request.remote_addr)
            return render_template("login.html", error=exc.message)

        session["view"] = VIEW_ADMIN
        return redirect("/")

    return render_template("login.html")


@app.route("/logout")
def logout():
    session.clear()
    session["view"] = VIEW_PUBLIC
    return redirect("/")


@app.route("/tickets/new")
@require_admin
def new_ticket():
    return render_ticket_form(TicketDraft.for_new())


@app.route("/tickets/<ticket_id>/edit")
@require_admin
def edit_ticket(ticket_id):
    ticket = ticket_store.get(ticket_id)
    if not ticket:
        return redirect(url_for("dashboard", error="Tiket tidak ditemukan."))
    return render_ticket_form(TicketDraft.from_ticket(ticket), editing=ticket)


@app.route("/tickets/save", methods=["POST"])
@require_admin
def save_ticket():
    ticket_id = request.form.get("ticket_id", "").strip()
    existing = None
    photo_url = None
    try:
        if ticket_id:
            existing = ticket_store.get(ticket_id)
            if not existing:
                return redirect(url_for("dashboard", error="Tiket tidak ditemukan."))

        base = TicketDraft.from_ticket(existing) if existing else None
        draft = TicketDraft.from_form(request.form, base=base)
        try:
            draft.validate()
        except ValidationError as exc:
            return render_ticket_form(draft, editing=existing, error=exc.message)

        photo_url = store_photo(request.files.get("photo"), app.config["UPLOAD_FOLDER"])
        if photo_url:
            draft.photo_url = photo_url

        lifecycle = TicketLifecycle(ticket_store)
        saved = lifecycle.save(
            draft,
            existing=existing,
            confirm=lambda message: request.form.get("confirm_no_photo") == "yes",
        )
    except SQLAlchemyError as exc:
        app.logger.error("Failed to save ticket: %s", exc)
        discard_photo(photo_url, app.config["UPLOAD_FOLDER"])
        return redirect(url_for("dashboard", error=SERVER_BUSY_MESSAGE))

    if saved is None:
        return render_ticket_form(draft, editing=existing, confirm_message=PHOTO_CONFIRM_MESSAGE)

    return redirect(url_for("dashboard", status_msg=f"Tiket {saved.id} tersimpan."))


@app.route("/tickets/<ticket_id>/delete", methods=["POST"])
@require_admin
def delete_ticket(ticket_id):
    try:
        TicketLifecycle(ticket_store).delete(ticket_id, confirmed=request.form.get("confirm") == "yes")
    except SQLAlchemyError as exc:
        app.logger.error("Failed to delete ticket %s: %s", ticket_id, exc)
        return redirect(url_for("dashboard", error=SERVER_BUSY_MESSAGE))
    return redirect("/")


@app.route("/summary", methods=["POST"])
def generate_summary():
    search = request.form.get("q", "").strip()
    status_filter = request.form.get("status", STATUS_ALL)
    try:
        tickets = ticket_store.read_all()
    except SQLAlchemyError as exc:
        app.logger.error("Failed to read tickets for summary: %s", exc)
        return render_dashboard(search, status_filter, error=SERVER_BUSY_MESSAGE)

    summary = summary_requester.generate(tickets)
    return render_dashboard(search, status_filter, ai_summary=summary)


@app.route("/theme", methods=["POST"])
def toggle_theme():
    try:
        theme_preference.toggle()
    except SQLAlchemyError as exc:
        app.logger.error("Failed to store theme: %s", exc)
    return redirect(request.referrer or "/")


@app.route("/uploads/<name>")
def uploaded_photo(name):
    return send_from_directory(app.config["UPLOAD_FOLDER"], os.path.basename(name))


@app.route("/healthz")
def healthz():
    return "ok", 200


if __name__ == "__main__":
    app.run(debug=False, use_reloader=False)
