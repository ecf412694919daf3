"""
Run the API locally with auto-reload and print the main endpoints.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Cashdesk Backend")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print("   - Health Check:      GET   http://localhost:8000/health")
    print("   - Cash custody:      GET   http://localhost:8000/cash-custody")
    print("   - Give custody:      POST  http://localhost:8000/cash-custody")
    print("   - Notifications:     GET   http://localhost:8000/notifications")
    print("   - Manager prices:    GET   http://localhost:8000/manager-prices")
    print("   - API Docs:                http://localhost:8000/docs")
    print()
    print("🔐 Authentication:")
    print("   All endpoints except /health, /auth/signup and /auth/password-check require:")
    print("   Authorization: Bearer <supabase access token>")
    print()
    print("📝 Test with curl:")
    print('   curl "http://localhost:8000/cash-custody" \\')
    print('     -H "Authorization: Bearer $ACCESS_TOKEN"')
    print()
    print("🛠  Database setup: python scripts/run_migrations.py")
    print()
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "cashdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
