import logging
import firebase_admin
from firebase_admin import credentials, firestore
from flask import current_app
from config import googleapi

logger = logging.getLogger(__name__)

def init_firestore():
    '''Firebase 초기화 후 Firestore 클라이언트 반환

    CREDENTIAL_PATH 가 없으면 Application Default Credentials 를 사용한다.
    '''
    if googleapi.CREDENTIAL_PATH:
        cred = credentials.Certificate(googleapi.CREDENTIAL_PATH)
    else:
        cred = credentials.ApplicationDefault()

    options = {'projectId': googleapi.PROJECT_ID} if googleapi.PROJECT_ID else None
    try:
        firebase_app = firebase_admin.get_app()
    except ValueError:
        firebase_app = firebase_admin.initialize_app(cred, options)

    logger.info("Firestore client ready (database=%s)", googleapi.FIRESTORE_DATABASE)
    return firestore.client(app=firebase_app, database_id=googleapi.FIRESTORE_DATABASE)

def get_db():
    return current_app.extensions['firestore']
