import logging
import logging.config
import os

def configure_logging(settings):
    '''콘솔 + 로테이팅 파일 로그 설정

    파일 핸들러는 5MB 단위로 5개까지 유지한다.
    로그 디렉토리를 만들 수 없는 환경이면 콘솔만 사용한다.
    '''
    handlers = {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'default',
        },
    }

    try:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'default',
            'filename': os.path.join(settings.LOG_DIR, 'server.log'),
            'maxBytes': 5242880,
            'backupCount': 5,
            'encoding': 'utf-8',
        }
    except OSError as e:
        logging.getLogger(__name__).warning("log directory unavailable (%s), console only", e)

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s',
            },
        },
        'handlers': handlers,
        'root': {
            'level': settings.LOG_LEVEL,
            'handlers': list(handlers),
        },
    })
