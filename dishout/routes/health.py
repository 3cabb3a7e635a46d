from flask import Blueprint, render_template_string

from ..utils.helpers import services

health_bp = Blueprint('health', __name__)

INDEX_HTML = """<!doctype html>
<html>
  <head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1"><title>DishOut</title></head>
  <body style="font-family: system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif; padding: 24px; max-width: 640px; margin: auto">
    <h1>What's on your Plate?</h1>
    <p style="color:#666">Snap a photo. DishOut identifies the meal and finds the best local spots serving it.</p>
    <form method="POST" action="/scan" enctype="multipart/form-data" style="border:1px solid #eee; padding:16px; border-radius:10px">
      <div><input type="file" name="image" accept="image/*" capture="environment" required></div>
      <div style="margin-top:8px"><button type="submit">Capture Dish</button></div>
    </form>
    <p style="margin-top:16px;color:#666">Sign in with POST /auth/session first. Model: {{ model }}</p>
  </body>
</html>"""


@health_bp.get("/")
def index():
    """Main index page"""
    return render_template_string(INDEX_HTML, model=services().analysis_client.model)


@health_bp.get("/health")
def health():
    """Health check endpoint"""
    return {"ok": True, "analysis_configured": services().analysis_client.configured}, 200
