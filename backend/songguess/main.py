from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from .models import db, User
from .services.sessions.progression import add_experience

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the song guessing server!'})

@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')
    if not username or not password:
        return jsonify({"success": False, "message": "Missing username or password"}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({"success": False, "message": "Username already exists"}), 400

    new_user = User(username=username)
    new_user.set_password(password)
    db.session.add(new_user)
    db.session.commit()
    login_user(new_user)
    return jsonify({"success": True, "user": new_user.to_dict()}), 201

@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({"success": True, "user": user.to_dict()})
    return jsonify({"success": False, "message": "Invalid credentials"}), 401

@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({"success": True, "user": current_user.to_dict()})

@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})

@main.route('/profile', methods=['GET'])
@login_required
def profile():
    return jsonify(current_user.to_dict())

@main.route('/profile/experience', methods=['POST'])
@login_required
def add_profile_experience():
    data = request.get_json(silent=True) or {}
    points = data.get('points')
    # bool is an int subclass; reject it explicitly
    if isinstance(points, bool) or not isinstance(points, (int, float)) or points <= 0:
        return jsonify({'error': 'Valid points value is required'}), 400

    levelled_up = add_experience(current_user, int(points))
    db.session.commit()
    return jsonify({'success': True, 'levelled_up': levelled_up, 'user': current_user.to_dict()})
