"""
Reader AI - HTTP API
Flask-based JSON API exposing summaries and recommendations to reader clients
"""

import threading
from typing import Optional, Tuple, Any
from flask import Flask, request, jsonify

from core.logger import log_info, log_error
from llm.errors import (
    AIServiceError,
    UnsupportedProvider,
    MissingApiKey,
    RequestInFlight,
    ProviderHttpError,
    ProviderResponseError,
    ProviderConnectionError,
    MalformedRecommendationResponse,
)
from llm.router import ProviderRouter
from assistant.summaries import SummaryService, get_summary_service
from assistant.recommendations import RecommendationConversation, get_recommendation_conversation


def _error_response(error: Exception) -> Tuple[Any, int]:
    """Map an AI service failure to a JSON error body and status code."""
    body = {"error": str(error), "type": type(error).__name__}

    if isinstance(error, (UnsupportedProvider, MissingApiKey, ValueError)):
        status = 400
    elif isinstance(error, RequestInFlight):
        status = 409
    elif isinstance(error, ProviderHttpError):
        body["provider_status"] = error.status
        status = 502
    elif isinstance(error, MalformedRecommendationResponse):
        body["error"] = f"Failed to parse recommendations: {error.reason}"
        body["raw_text"] = error.raw_text
        status = 502
    elif isinstance(error, (ProviderResponseError, ProviderConnectionError)):
        status = 502
    else:
        # PersistenceError and anything unexpected
        status = 500

    return jsonify(body), status


def _provider_and_key(data: dict) -> Tuple[str, str]:
    import config
    return data.get("provider") or config.AI_PROVIDER, data.get("api_key") or config.AI_API_KEY


def create_app(
    summary_service: Optional[SummaryService] = None,
    conversation: Optional[RecommendationConversation] = None
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    def summaries() -> SummaryService:
        return summary_service or get_summary_service()

    def chat() -> RecommendationConversation:
        return conversation or get_recommendation_conversation()

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "service": "reader-ai"})

    @app.route("/providers", methods=["GET"])
    def providers():
        """List supported AI providers."""
        return jsonify({"providers": ProviderRouter.list_providers()})

    @app.route("/summaries/<book_id>/<chapter_id>", methods=["GET"])
    def get_summary(book_id: str, chapter_id: str):
        """Get the cached summary of a chapter."""
        try:
            record = summaries().get_cached_summary(book_id, chapter_id)
            if record is None:
                return jsonify({"error": "No summary cached for this chapter"}), 404
            return jsonify(record.to_dict())
        except AIServiceError as e:
            log_error(f"Summary lookup API error: {e}")
            return _error_response(e)

    @app.route("/summaries", methods=["POST"])
    def create_summary():
        """
        Generate (or fetch) a chapter summary.

        Request body:
        {
            "book_id": "...", "chapter_id": "...",
            "book_name": "...", "chapter_title": "...", "content": "...",
            "provider": "deepseek|glm|gemini",   (optional, config default)
            "api_key": "...",                    (optional, config default)
            "regenerate": false                  (true always calls the provider)
        }
        """
        data = request.get_json(silent=True)
        required = ("book_id", "chapter_id", "book_name", "chapter_title", "content")
        if not data or any(field not in data for field in required):
            return jsonify({"error": f"Missing one of: {', '.join(required)}"}), 400

        provider, api_key = _provider_and_key(data)
        args = (
            provider, api_key,
            data["book_id"], data["chapter_id"],
            data["book_name"], data["chapter_title"], data["content"]
        )

        try:
            if data.get("regenerate"):
                record = summaries().regenerate_summary(*args)
            else:
                record = summaries().get_or_generate_summary(*args)
            return jsonify(record.to_dict())
        except AIServiceError as e:
            log_error(f"Summary API error: {e}")
            return _error_response(e)

    @app.route("/summaries/<book_id>/<chapter_id>", methods=["DELETE"])
    def delete_summary(book_id: str, chapter_id: str):
        """Forget one chapter summary."""
        try:
            summaries().purge_chapter(book_id, chapter_id)
            return jsonify({"deleted": True})
        except AIServiceError as e:
            return _error_response(e)

    @app.route("/summaries/<book_id>", methods=["DELETE"])
    def delete_book_summaries(book_id: str):
        """Forget every summary of a book."""
        try:
            summaries().purge_book(book_id)
            return jsonify({"deleted": True})
        except AIServiceError as e:
            return _error_response(e)

    @app.route("/books/<book_id>/summaries/count", methods=["GET"])
    def count_summaries(book_id: str):
        """Number of cached chapter summaries for a book."""
        try:
            return jsonify({"book_id": book_id, "count": summaries().count_for_book(book_id)})
        except AIServiceError as e:
            return _error_response(e)

    @app.route("/recommendations", methods=["POST"])
    def recommend():
        """
        One-off recommendation request (does not touch the chat transcript).

        Request body:
        {"query": "...", "provider": "...", "api_key": "..."}
        """
        data = request.get_json(silent=True)
        if not data or not data.get("query"):
            return jsonify({"error": "Missing 'query' field"}), 400

        provider, api_key = _provider_and_key(data)
        try:
            recommendations = chat().service.recommend_books(provider, api_key, data["query"])
            return jsonify({"recommendations": [r.to_dict() for r in recommendations]})
        except AIServiceError as e:
            log_error(f"Recommendation API error: {e}")
            return _error_response(e)

    @app.route("/chat", methods=["GET"])
    def chat_history():
        """Current transcript, loading it from storage on first use."""
        conv = chat()
        messages = conv.messages() or conv.open()
        return jsonify({
            "state": conv.state.value,
            "messages": [_message_json(m) for m in messages]
        })

    @app.route("/chat", methods=["POST"])
    def chat_send():
        """
        Send a chat message and get the assistant's reply.

        Request body:
        {"message": "...", "provider": "...", "api_key": "..."}
        """
        data = request.get_json(silent=True)
        if not data or "message" not in data:
            return jsonify({"error": "Missing 'message' field"}), 400

        provider, api_key = _provider_and_key(data)
        conv = chat()
        if not conv.messages():
            conv.open()

        try:
            reply = conv.ask(provider, api_key, data["message"])
        except (AIServiceError, ValueError) as e:
            return _error_response(e)

        return jsonify({"reply": _message_json(reply), "state": conv.state.value})

    @app.route("/chat", methods=["DELETE"])
    def chat_clear():
        """Clear the transcript."""
        conv = chat()
        conv.clear_history()
        return jsonify({"messages": [_message_json(m) for m in conv.messages()]})

    return app


def _message_json(message) -> dict:
    data = message.to_dict()
    data["kind"] = message.kind.value
    return data


class HTTPServer:
    """
    HTTP server manager.

    Runs Flask in a background thread.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 5000):
        self.host = host
        self.port = port
        self._app: Optional[Flask] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the HTTP server in a background thread."""
        self._app = create_app()

        self._thread = threading.Thread(
            target=self._run_server,
            daemon=True,
            name="HTTPServer"
        )
        self._thread.start()

        log_info(f"HTTP API started on http://{self.host}:{self.port}", prefix="🌐")

    def _run_server(self) -> None:
        """Run the Flask server."""
        # Suppress Flask's default request logging
        import logging
        logging.getLogger("werkzeug").setLevel(logging.ERROR)

        self._app.run(
            host=self.host,
            port=self.port,
            debug=False,
            use_reloader=False,
            threaded=True
        )

    def join(self) -> None:
        """Block until the server thread exits."""
        if self._thread is not None:
            self._thread.join()


# Global HTTP server instance
_http_server: Optional[HTTPServer] = None


def get_http_server() -> HTTPServer:
    """Get the global HTTP server instance."""
    global _http_server
    if _http_server is None:
        import config
        _http_server = HTTPServer(host=config.HTTP_API_HOST, port=config.HTTP_API_PORT)
    return _http_server


def init_http_server(host: str = "127.0.0.1", port: int = 5000) -> HTTPServer:
    """Initialize the global HTTP server."""
    global _http_server
    _http_server = HTTPServer(host=host, port=port)
    return _http_server
