#!/usr/bin/env python3
"""
OpsDesk Server
--------------
JSON API over one in-memory Workspace. Restarting the process resets all
state to the seed records.

Usage:
    python desk_server.py            # settings from opsdesk.yaml / $OPSDESK_CONFIG
    OPSDESK_PORT=8080 python desk_server.py

Acting user:
    X-User-Id: u2        → requests act as that seeded user
    (absent)             → the configured current_user

API:
    GET  /api/board?focus=&entity=           → { columns, can_drag }
    GET  /api/tasks?focus=&entity=&project=  → { rows, count }
    GET  /api/calendar?year=&month=          → { title, cells }
    POST /api/tasks                          → { task }
    PUT  /api/tasks/<id>                     → { task }
    POST /api/tasks/<id>/move                → { moved, task }     body: { status }
    ...  see create_app() for the full list
"""
import logging
import sys

from flask import Flask, jsonify, request

from opsdesk.access import RoleViolation
from opsdesk.config import ConfigError, Settings, setup_logging
from opsdesk.dashboard import summarize
from opsdesk.generator import GeminiGenerator
from opsdesk.ideas import PromotionError
from opsdesk.schema import SOP, Idea, NotFoundError, RMIFocus, Task
from opsdesk.sops import TITLE_REQUIRED
from opsdesk.views import TaskFilter, table_rows
from opsdesk.workspace import Workspace

logger = logging.getLogger(__name__)


def _body() -> dict:
    return request.get_json(force=True, silent=True) or {}


def _filter() -> TaskFilter:
    return TaskFilter.from_args(request.args.get("focus"), request.args.get("entity"))


def create_app(workspace: Workspace) -> Flask:
    app = Flask(__name__)
    ws = workspace

    def actor():
        user_id = request.headers.get("X-User-Id", "").strip()
        return ws.get_user(user_id) if user_id else ws.current_user

    # ── Error mapping ────────────────────────────────────────────────────────

    @app.errorhandler(RoleViolation)
    def _forbidden(e):
        return jsonify({"error": str(e)}), 403

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(PromotionError)
    def _conflict(e):
        return jsonify({"error": str(e)}), 409

    # ── Tasks ────────────────────────────────────────────────────────────────

    @app.route("/api/board")
    def api_board():
        columns = ws.board.columns(_filter())
        return jsonify({
            "columns": {status.value: [t.to_dict() for t in tasks] for status, tasks in columns.items()},
            "can_drag": ws.board.can_drag(actor()),
        })

    @app.route("/api/tasks", methods=["GET"])
    def api_tasks():
        project_id = request.args.get("project")
        tasks = ws.store.tasks_for_project(project_id) if project_id else ws.store.list_tasks()
        rows = table_rows(tasks, _filter(), ws.store)
        return jsonify({"rows": [r.to_dict() for r in rows], "count": len(rows)})

    @app.route("/api/calendar")
    def api_calendar():
        cursor = ws.calendar
        if request.args.get("year") and request.args.get("month"):
            try:
                cursor.show(int(request.args["year"]), int(request.args["month"]))
            except ValueError:
                return jsonify({"error": "year and month must name a real month"}), 400
        step = request.args.get("step", "")
        if step == "prev":
            cursor.previous()
        elif step == "next":
            cursor.next()
        elif step == "today":
            cursor.today()
        tasks = _filter().apply(ws.store.list_tasks(), ws.store)
        return jsonify({
            "title": cursor.title,
            "year": cursor.year,
            "month": cursor.month,
            "cells": [c.to_dict() for c in cursor.grid(tasks)],
        })

    @app.route("/api/tasks", methods=["POST"])
    def api_create_task():
        task = ws.store.create_task(_body(), actor=actor())
        return jsonify({"task": task.to_dict()}), 201

    @app.route("/api/tasks/<task_id>", methods=["PUT"])
    def api_update_task(task_id):
        data = ws.store.get_task(task_id).to_dict()
        data.update(_body())
        data["id"] = task_id
        task = ws.store.update_task(Task.from_dict(data), actor=actor())
        return jsonify({"task": task.to_dict()})

    @app.route("/api/tasks/<task_id>/move", methods=["POST"])
    def api_move_task(task_id):
        status = (_body().get("status") or "").strip()
        if not status:
            return jsonify({"error": "status is required"}), 400
        try:
            moved = ws.board.drop(task_id, status, actor=actor())
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({"moved": moved, "task": ws.store.get_task(task_id).to_dict()})

    @app.route("/api/tasks/<task_id>/subtasks", methods=["POST"])
    def api_add_subtask(task_id):
        subtask = ws.store.add_subtask(task_id, _body(), actor=actor())
        return jsonify({"subtask": subtask.to_dict(), "task": ws.store.get_task(task_id).to_dict()}), 201

    @app.route("/api/tasks/<task_id>/subtasks/<subtask_id>/toggle", methods=["POST"])
    def api_toggle_subtask(task_id, subtask_id):
        subtask = ws.store.toggle_subtask(task_id, subtask_id, actor=actor())
        return jsonify({"subtask": subtask.to_dict(), "task": ws.store.get_task(task_id).to_dict()})

    @app.route("/api/tasks/<task_id>/comments", methods=["POST"])
    def api_add_comment(task_id):
        comment = ws.store.add_comment(task_id, actor(), _body().get("text", ""))
        if comment is None:
            return jsonify({"error": "text is required"}), 400
        return jsonify({"comment": comment.to_dict()}), 201

    @app.route("/api/tasks/<task_id>/attachments", methods=["POST"])
    def api_add_attachment(task_id):
        data = _body()
        attachment = ws.store.add_attachment(task_id, data.get("name", ""), data.get("size"), actor=actor())
        if attachment is None:
            return jsonify({"error": "name is required"}), 400
        return jsonify({"attachment": attachment.to_dict()}), 201

    @app.route("/api/tasks/<task_id>/recur", methods=["POST"])
    def api_recur_task(task_id):
        task = ws.store.spawn_next_occurrence(task_id, actor=actor())
        if task is None:
            return jsonify({"error": f"Task {task_id} is not recurring"}), 400
        return jsonify({"task": task.to_dict()}), 201

    # ── Projects ─────────────────────────────────────────────────────────────

    @app.route("/api/projects", methods=["GET"])
    def api_projects():
        projects = ws.store.list_projects(request.args.get("entity"))
        return jsonify({"projects": [p.to_dict() for p in projects]})

    @app.route("/api/projects", methods=["POST"])
    def api_create_project():
        project = ws.store.add_project(_body(), actor=actor())
        return jsonify({"project": project.to_dict()}), 201

    @app.route("/api/projects/<project_id>/suggestions", methods=["POST"])
    def api_import_suggestions(project_id):
        user = actor()
        ws.policy.check(user, "import suggested tasks")
        suggestions = ws.suggest_tasks(project_id)
        focus = RMIFocus.from_str(_body().get("focus"))
        tasks = ws.store.import_suggestions(project_id, suggestions, focus=focus, actor=user)
        return jsonify({"tasks": [t.to_dict() for t in tasks], "count": len(tasks)}), 201

    # ── Ideas ────────────────────────────────────────────────────────────────

    @app.route("/api/ideas", methods=["GET"])
    def api_ideas():
        return jsonify({"ideas": [i.to_dict() for i in ws.ideas.rank()]})

    @app.route("/api/ideas", methods=["POST"])
    def api_create_idea():
        idea = ws.ideas.add_idea(_body(), actor=actor())
        return jsonify({"idea": idea.to_dict()}), 201

    @app.route("/api/ideas/<idea_id>", methods=["PUT"])
    def api_update_idea(idea_id):
        data = ws.ideas.get_idea(idea_id).to_dict()
        data.update(_body())
        data["id"] = idea_id
        idea = ws.ideas.update_idea(Idea.from_dict(data), actor=actor())
        return jsonify({"idea": idea.to_dict()})

    @app.route("/api/ideas/<idea_id>/promote", methods=["POST"])
    def api_promote_idea(idea_id):
        focus = RMIFocus.from_str(_body().get("focus"))
        task = ws.ideas.promote(idea_id, focus, actor=actor())
        return jsonify({
            "task": task.to_dict(),
            "idea": ws.ideas.get_idea(idea_id).to_dict(),
            "view": ws.active_view,
        }), 201

    # ── SOPs ─────────────────────────────────────────────────────────────────

    @app.route("/api/sops", methods=["GET"])
    def api_sops():
        sops = ws.sops.list_sops(request.args.get("entity"))
        return jsonify({"sops": [s.to_dict() for s in sops]})

    @app.route("/api/sops", methods=["POST"])
    def api_create_sop():
        sop = ws.sops.add_sop(_body(), actor=actor())
        return jsonify({"sop": sop.to_dict()}), 201

    @app.route("/api/sops/<sop_id>", methods=["PUT"])
    def api_update_sop(sop_id):
        data = ws.sops.get_sop(sop_id).to_dict()
        data.update(_body())
        data["id"] = sop_id
        sop = ws.sops.update_sop(SOP.from_dict(data), actor=actor())
        return jsonify({"sop": sop.to_dict()})

    @app.route("/api/sops/draft", methods=["POST"])
    def api_draft_sop():
        data = _body()
        content, message = ws.sops.generate_draft(data.get("title", ""), data.get("description", ""), ws.assistant)
        if content is None:
            code = 400 if message == TITLE_REQUIRED else 502
            return jsonify({"error": message}), code
        return jsonify({"content": content, "message": message})

    # ── Notifications ────────────────────────────────────────────────────────

    @app.route("/api/notifications")
    def api_notifications():
        return jsonify({"notifications": ws.feed.display(), "unread": ws.feed.unread_count})

    @app.route("/api/notifications/<notification_id>/read", methods=["POST"])
    def api_mark_read(notification_id):
        notification = ws.feed.mark_read(notification_id)
        return jsonify({"notification": notification.to_dict(), "unread": ws.feed.unread_count})

    @app.route("/api/notifications/<notification_id>", methods=["DELETE"])
    def api_dismiss(notification_id):
        ws.feed.dismiss(notification_id)
        return jsonify({"dismissed": notification_id, "unread": ws.feed.unread_count})

    # ── Dashboard / insights ─────────────────────────────────────────────────

    @app.route("/api/dashboard")
    def api_dashboard():
        return jsonify(summarize(ws.store, ws.ideas, ws.registry))

    @app.route("/api/insights/<entity_id>")
    def api_insights(entity_id):
        return jsonify({"entity_id": entity_id, "summary": ws.insights(entity_id)})

    # ── Settings ─────────────────────────────────────────────────────────────

    @app.route("/api/settings")
    def api_settings():
        data = ws.registry.to_dict()
        data["users"] = [u.to_dict() for u in ws.users.values()]
        data["current_user"] = actor().to_dict()
        return jsonify(data)

    @app.route("/api/settings/entities/<entity_id>", methods=["PUT"])
    def api_update_entity(entity_id):
        data = _body()
        entity = ws.registry.update_entity(
            entity_id,
            name=data.get("name"),
            icon=data.get("icon"),
            color=data.get("color"),
            actor=actor(),
        )
        return jsonify({"entity": entity.to_dict()})

    @app.route("/api/settings/members", methods=["POST"])
    def api_add_member():
        name = (_body().get("name") or "").strip()
        if not name:
            return jsonify({"error": "name is required"}), 400
        added = ws.registry.add_member(name, actor=actor())
        return jsonify({"added": added, "team_members": ws.registry.team_members}), 201 if added else 200

    @app.route("/api/settings/members/<name>", methods=["DELETE"])
    def api_remove_member(name):
        if not ws.registry.remove_member(name, actor=actor()):
            return jsonify({"error": f"Member {name!r} not found"}), 404
        return jsonify({"removed": name, "team_members": ws.registry.team_members})

    @app.route("/api/settings/focus/<tag>", methods=["PUT"])
    def api_update_focus(tag):
        data = _body()
        meta = ws.registry.update_focus(
            tag,
            label=data.get("label"),
            description=data.get("description"),
            color=data.get("color"),
            icon=data.get("icon"),
            actor=actor(),
        )
        return jsonify({"focus": RMIFocus.from_str(tag).value, "meta": meta.to_dict()})

    @app.route("/api/health")
    def api_health():
        return jsonify({
            "status": "ok",
            "tasks": len(ws.store.list_tasks()),
            "unread": ws.feed.unread_count,
        })

    return app


def main():
    try:
        settings = Settings.load()
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        sys.exit(1)
    setup_logging(settings.log_level)

    generator = GeminiGenerator.from_settings(settings)
    if not generator.api_key:
        logger.warning(f"{settings.generator.api_key_env} not set; AI features will return fallbacks")

    workspace = Workspace.from_seed(generator=generator, current_user=settings.current_user)
    app = create_app(workspace)
    logger.info(f"OpsDesk listening on http://{settings.server.host}:{settings.server.port}")
    app.run(host=settings.server.host, port=settings.server.port, debug=False)


if __name__ == "__main__":
    main()
