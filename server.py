#!/usr/bin/env python3
"""
FaceCenter AI Server using Gemini
Submit (URL or Upload) → AI Face Centering + Square Outpainting → Preview & Download
"""

import io, uuid, logging
from pathlib import Path
from flask import Flask, request, jsonify, send_file, render_template_string
from flask_cors import CORS

import config
from errors import InvalidTransitionError
from image_utils import parse_data_uri, image_dimensions
from presenter import ResultPresenter, ProcessingState

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
CORS(app)

sessions = {}


def new_session():
    while len(sessions) >= config.MAX_SESSIONS:
        oldest = next(iter(sessions))
        del sessions[oldest]
        logger.info(f"🗑️ Evicted session {oldest}")
    sid = str(uuid.uuid4())
    sessions[sid] = ResultPresenter()
    logger.info(f"🆕 Session {sid}")
    return sid


def state_json(sid):
    p = sessions[sid]
    out = {'success': True, 'session_id': sid, 'circle_preview': p.show_circle_preview, **p.result.to_dict()}
    if p.status == ProcessingState.SUCCESS:
        try:
            size = image_dimensions(parse_data_uri(p.result.processed_url)[1])
        except ValueError:
            size = None
        if size:
            out['width'], out['height'] = size
    return out


def lookup(sid):
    return sessions.get(sid) if sid else None


@app.route('/')
def index():
    return render_template_string(HTML_TEMPLATE, accept=','.join(sorted(config.ALLOWED_EXTENSIONS)))


@app.route('/process', methods=['POST'])
def process():
    if request.files or request.form:
        sid = request.form.get('session_id')
        url = None
    else:
        data = request.get_json(silent=True) or {}
        sid = data.get('session_id')
        url = data.get('url')
    if sid and sid not in sessions:
        return jsonify({'error': 'Invalid session'}), 400
    if url is None:
        if 'image' not in request.files:
            return jsonify({'error': 'No image'}), 400
        file = request.files['image']
        if file.filename == '':
            return jsonify({'error': 'No file'}), 400
        ext = Path(file.filename).suffix.lower()
        if ext not in config.ALLOWED_EXTENSIONS:
            return jsonify({'error': 'Invalid format'}), 400
        raw = file.read()
        if len(raw) > config.MAX_UPLOAD_BYTES:
            return jsonify({'error': 'File too large'}), 400
    elif not isinstance(url, str) or not url.strip():
        return jsonify({'error': 'No URL'}), 400
    sid = sid or new_session()
    presenter = sessions[sid]
    try:
        if url is None:
            presenter.submit_file(io.BytesIO(raw), original_url=f'/original/{sid}', mime_type=file.mimetype)
        else:
            presenter.submit_url(url)
    except InvalidTransitionError as e:
        return jsonify({'error': str(e), 'session_id': sid}), 409
    return jsonify(state_json(sid))


@app.route('/state/<session_id>')
def state(session_id):
    if not lookup(session_id):
        return jsonify({'error': 'Invalid session'}), 400
    return jsonify(state_json(session_id))


@app.route('/reset/<session_id>', methods=['POST'])
def reset(session_id):
    presenter = lookup(session_id)
    if not presenter:
        return jsonify({'error': 'Invalid session'}), 400
    try:
        presenter.reset()
    except InvalidTransitionError as e:
        return jsonify({'error': str(e)}), 409
    return jsonify(state_json(session_id))


@app.route('/circle-preview/<session_id>', methods=['POST'])
def circle_preview(session_id):
    presenter = lookup(session_id)
    if not presenter:
        return jsonify({'error': 'Invalid session'}), 400
    presenter.toggle_circle_preview()
    return jsonify(state_json(session_id))


@app.route('/original/<session_id>')
def original(session_id):
    presenter = lookup(session_id)
    if not presenter or not presenter.original_file:
        return jsonify({'error': 'Not found'}), 404
    raw, mimetype = presenter.original_file
    return send_file(io.BytesIO(raw), mimetype=mimetype)


@app.route('/download/<session_id>')
def download(session_id):
    presenter = lookup(session_id)
    if not presenter or presenter.status != ProcessingState.SUCCESS:
        return jsonify({'error': 'Not found'}), 400
    try:
        raw, mimetype, filename = presenter.download()
    except ValueError as e:
        return jsonify({'error': str(e)}), 500
    return send_file(io.BytesIO(raw), mimetype=mimetype, as_attachment=True, download_name=filename)


HTML_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8"><meta name="viewport" content="width=device-width,initial-scale=1.0">
<title>FaceCenter AI</title>
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;800&display=swap" rel="stylesheet">
<style>
:root{--t:0.2s ease;--bg:#f8fafc;--bg2:#fff;--bg3:#f1f5f9;--tx:#0f172a;--tx2:#475569;--tx3:#94a3b8;--bd:#e2e8f0;--ac:#4f46e5;--ac2:#4338ca;--acbg:rgba(79,70,229,0.08);--err:#dc2626;--sh:0 10px 30px rgba(15,23,42,0.08)}
*{margin:0;padding:0;box-sizing:border-box}
body{font-family:Inter,-apple-system,sans-serif;background:var(--bg);color:var(--tx);min-height:100vh;display:flex;flex-direction:column}
.hdr{background:var(--bg2);border-bottom:1px solid var(--bd);padding:24px;text-align:center}
.hdr h1{font-size:1.8rem;font-weight:800;display:flex;gap:8px;justify-content:center;align-items:center}
.hdr p{color:var(--tx2);max-width:560px;margin:8px auto 0}
.app{max-width:1000px;margin:0 auto;padding:32px 16px;flex:1;width:100%}
.card{background:var(--bg2);border:1px solid var(--bd);border-radius:16px;padding:32px;box-shadow:var(--sh);max-width:640px;margin:0 auto}
.hid{display:none!important}
label{font-size:.875rem;font-weight:600;color:var(--tx2);display:block;margin-bottom:8px}
.row{display:flex;gap:8px}
.row input{flex:1;padding:12px 16px;border:1px solid var(--bd);border-radius:12px;font-size:.95rem;font-family:inherit}
.row input:focus{outline:none;border-color:var(--ac)}
.or{text-align:center;color:var(--tx3);font-size:.75rem;text-transform:uppercase;margin:24px 0}
.upz{border:2px dashed var(--bd);border-radius:16px;padding:40px 24px;text-align:center;cursor:pointer;transition:all var(--t)}
.upz:hover,.upz.drag{border-color:var(--ac);background:var(--acbg)}
.upz h3{font-size:1rem;font-weight:500;color:var(--tx2)}
.upz p{color:var(--tx3);font-size:.85rem;margin-top:4px}
#fi{display:none}
.err{background:rgba(220,38,38,0.06);border:1px solid rgba(220,38,38,0.2);color:var(--err);padding:12px 16px;border-radius:12px;margin-top:20px;font-size:.875rem}
.load{text-align:center;padding:24px}
.spin{width:56px;height:56px;border:4px solid var(--acbg);border-top-color:var(--ac);border-radius:50%;animation:spin 1s linear infinite;margin:0 auto 20px}
@keyframes spin{to{transform:rotate(360deg)}}
.lmsg{font-size:1.05rem;font-weight:500;color:var(--tx2)}
.lsub{font-size:.8rem;color:var(--tx3);margin-top:6px}
.res{display:grid;grid-template-columns:1fr 1fr;gap:24px;align-items:start}
.pane{background:var(--bg2);border:1px solid var(--bd);border-radius:16px;padding:16px;box-shadow:var(--sh)}
.pane.main{border:2px solid var(--acbg)}
.ph{display:flex;justify-content:space-between;align-items:center;margin-bottom:12px;font-size:.8rem;font-weight:700;text-transform:uppercase;color:var(--tx3)}
.pane.main .ph{color:var(--ac)}
.sq{aspect-ratio:1/1;overflow:hidden;border-radius:12px;background:var(--bg3);display:flex;align-items:center;justify-content:center}
.sq img{width:100%;height:100%;object-fit:contain;transition:border-radius .5s}
.sq img.cover{object-fit:cover}
.sq img.circle{border-radius:50%}
.tog{font-size:.75rem;padding:4px 8px;border-radius:6px;border:none;cursor:pointer;background:var(--bg3);color:var(--tx2)}
.tog.on{background:var(--ac);color:#fff}
.btn{display:inline-flex;align-items:center;justify-content:center;gap:8px;padding:12px 24px;border:none;border-radius:12px;font-size:.9rem;font-weight:600;cursor:pointer;transition:all var(--t);font-family:inherit}
.btn-p{background:var(--ac);color:#fff}
.btn-p:hover:not(:disabled){background:var(--ac2)}
.btn-s{background:var(--bg2);color:var(--tx2);border:1px solid var(--bd)}
.btn:disabled{opacity:0.5;cursor:not-allowed}
.btng{display:flex;gap:12px;margin-top:20px}
.btng .btn{flex:1}
.note{margin-top:12px;font-size:.75rem;color:var(--tx3);text-align:center;font-style:italic}
.footer{padding:16px;text-align:center;font-size:.8rem;color:var(--tx3)}
@media(max-width:720px){.res{grid-template-columns:1fr}.btng{flex-direction:column}.card{padding:24px 20px}}
</style>
</head>
<body>
<header class="hdr"><h1>📷 FaceCenter AI</h1><p>Automatic face centering and square outpainting. Optimized for circle profile layouts with AI-generated backgrounds.</p></header>
<div class="app">
<div class="card" id="input">
<label>🔗 Photo URL</label>
<div class="row"><input type="text" id="url" placeholder="https://example.com/photo.jpg" oninput="document.getElementById('ubtn').disabled=!this.value.trim()"><button class="btn btn-p" id="ubtn" onclick="submitUrl()" disabled>Process</button></div>
<div class="or">Or upload a file</div>
<div class="upz" id="upz"><h3>⬆️ Click to select an image from your device</h3><p>High resolution JPG or PNG recommended</p></div>
<input type="file" id="fi" accept="{{ accept }}">
<div class="err hid" id="err"></div>
</div>
<div class="card hid" id="loading"><div class="load"><div class="spin"></div><p class="lmsg" id="lmsg">Analyzing facial structure...</p><p class="lsub">Using Gemini 2.5 Flash for advanced outpainting</p></div></div>
<div class="res hid" id="result">
<div class="pane"><div class="ph"><span>Original</span><span>Input Photo</span></div><div class="sq"><img id="oimg" src="" alt="Original"></div></div>
<div class="pane main"><div class="ph"><span>Processed Result</span><button class="tog" id="tog" onclick="toggleCircle()">◯ Circle View</button></div>
<div class="sq"><img id="pimg" class="cover" src="" alt="Processed"></div>
<div class="btng"><button class="btn btn-p" onclick="dl()">⬇️ Download Square</button><button class="btn btn-s" onclick="tryAnother()">🔄 Try Another</button></div>
<p class="note">AI centered the face and added extra padding for the perfect circle crop.</p></div>
</div>
</div>
<footer class="footer">Powered by Gemini 2.5 Flash • High Fidelity Profile Generation</footer>
<script>
const MSGS=["Analyzing facial structure...","Calculating optimal square crop...","Generating high-resolution background...","Outpainting seamless details...","Finalizing AI magic...","Enhancing portrait quality..."];
let sid=null,iv=null;
const upz=document.getElementById('upz'),fi=document.getElementById('fi');
upz.onclick=()=>fi.click();
upz.ondragover=e=>{e.preventDefault();upz.classList.add('drag')};
upz.ondragleave=()=>upz.classList.remove('drag');
upz.ondrop=e=>{e.preventDefault();upz.classList.remove('drag');if(e.dataTransfer.files.length)submitFile(e.dataTransfer.files[0])};
fi.onchange=e=>{if(e.target.files.length)submitFile(e.target.files[0])};

function show(id){['input','loading','result'].forEach(s=>document.getElementById(s).classList.toggle('hid',s!==id))}

function loading(){show('loading');let i=0;const m=document.getElementById('lmsg');m.textContent=MSGS[0];
iv=setInterval(()=>{i=(i+1)%MSGS.length;m.textContent=MSGS[i]},2500)}

async function submitUrl(){
const url=document.getElementById('url').value.trim();if(!url)return;
loading();
render(await (await fetch('/process',{method:'POST',headers:{'Content-Type':'application/json'},body:JSON.stringify({url:url,session_id:sid})})).json())}

async function submitFile(f){
const fd=new FormData();fd.append('image',f);if(sid)fd.append('session_id',sid);
loading();
render(await (await fetch('/process',{method:'POST',body:fd})).json())}

function render(d){
clearInterval(iv);
if(d.error==='Invalid session')sid=null;
if(d.session_id)sid=d.session_id;
const e=document.getElementById('err');
if(d.status==='success'){
document.getElementById('oimg').src=d.original_url;document.getElementById('pimg').src=d.processed_url;
circle(d.circle_preview);show('result');return}
const msg=d.error_message||d.error;
e.textContent=msg?'✕ '+msg:'';e.classList.toggle('hid',!msg);show('input')}

function circle(on){document.getElementById('pimg').classList.toggle('circle',on);document.getElementById('tog').classList.toggle('on',on)}

async function toggleCircle(){if(!sid)return;
const d=await (await fetch('/circle-preview/'+sid,{method:'POST'})).json();circle(d.circle_preview)}

function dl(){if(sid)window.location.href='/download/'+sid}

async function tryAnother(){
if(sid)await fetch('/reset/'+sid,{method:'POST'});
document.getElementById('url').value='';document.getElementById('ubtn').disabled=true;fi.value='';
document.getElementById('oimg').src='';document.getElementById('pimg').src='';
render({status:'idle'})}
</script>
</body>
</html>
'''

def main():
    print(f"\n🚀 FaceCenter AI Server\n📍 http://localhost:{config.PORT}\n")
    app.run(host='0.0.0.0', port=config.PORT, debug=False)


if __name__ == '__main__':
    main()
