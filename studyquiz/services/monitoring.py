"""
Health checks and monitoring with Prometheus metrics
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
import time
import psutil
import structlog

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
TEXT_EXTRACTIONS = Counter('text_extractions_total', 'Documents turned into text', ['kind', 'method'])
QUIZ_GENERATION_REQUESTS = Counter('quiz_generation_requests_total', 'Quiz generation attempts', ['outcome'])
QUESTIONS_GENERATED = Counter('questions_generated_total', 'Questions produced by the synthesizer', ['type'])
QUIZ_GRADING_REQUESTS = Counter('quiz_grading_requests_total', 'Quizzes graded')

HEALTH_CHECK_TEXT = (
    "Osmosis is the movement of water molecules across a membrane. "
    "Plant cells depend on this process to stay firm and healthy during the day. "
    "When water leaves the cell, the plant begins to wilt quite quickly."
)


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_pipeline(self) -> dict:
        """Run a canned paragraph through the quiz pipeline"""
        try:
            from studyquiz.services.pipeline import QuizSession
            questions = QuizSession(HEALTH_CHECK_TEXT).questions()

            if questions:
                return {
                    "status": "healthy",
                    "message": "Quiz pipeline produced questions",
                    "questions": len(questions)
                }
            else:
                return {
                    "status": "unhealthy",
                    "message": "Quiz pipeline produced no questions"
                }
        except Exception as e:
            logger.error("pipeline_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"Quiz pipeline failed: {str(e)}"
            }

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)
            memory = psutil.virtual_memory()

            return {
                "cpu_percent": cpu_percent,
                "memory_percent": memory.percent,
                "memory_available_gb": round(memory.available / (1024**3), 2),
                "uptime_seconds": time.time() - self.start_time
            }
        except Exception as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {
            "pipeline": self.check_pipeline(),
        }

        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "unhealthy_components": unhealthy_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
