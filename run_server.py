"""
Start the Zesty proxy locally.

Usage:
    python run_server.py
"""

import uvicorn

from zesty.config import settings

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Zesty Backend")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print(f"   - Health Check:    GET  http://localhost:{settings.PORT}/api/health")
    print(f"   - Generate Cards:  POST http://localhost:{settings.PORT}/api/zesty/generate-cards")
    print(f"   - Graph Search:    GET  http://localhost:{settings.PORT}/api/qloo/search")
    print(f"   - API Docs:             http://localhost:{settings.PORT}/docs")
    print()
    print("🔐 Authentication:")
    print("   /api/preferences, /api/challenges and /api/zesty/my-cards require:")
    print("   Authorization: Bearer <supabase access token>")
    print()
    print("📝 Test with curl:")
    print(f'   curl -X POST "http://localhost:{settings.PORT}/api/zesty/generate-cards" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"userPreferences": [{"name": "Inception", "type": "movie"}]}\'')
    print()
    print("=" * 60)
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "zesty.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower()
    )
