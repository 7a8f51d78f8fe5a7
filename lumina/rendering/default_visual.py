# Documento mostrado mientras no hay visualización generada
DEFAULT_VISUAL = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
  body { margin: 0; background: #020204; overflow: hidden; }
  canvas { display: block; }
</style>
</head>
<body>
<script type="module">
  import * as THREE from 'https://unpkg.com/three@0.160.0/build/three.module.js';

  const scene = new THREE.Scene();
  scene.fog = new THREE.FogExp2(0x020204, 0.002);
  const camera = new THREE.PerspectiveCamera(75, window.innerWidth / window.innerHeight, 0.1, 1000);
  const renderer = new THREE.WebGLRenderer({ antialias: true });
  renderer.setSize(window.innerWidth, window.innerHeight);
  document.body.appendChild(renderer.domElement);

  scene.add(new THREE.GridHelper(100, 50, 0x333333, 0x111111));
  camera.position.set(0, 20, 40);

  function animate() {
    requestAnimationFrame(animate);
    const t = Date.now() * 0.0005;
    camera.position.x = Math.cos(t) * 30;
    camera.position.z = Math.sin(t) * 30;
    camera.lookAt(0, 0, 0);
    renderer.render(scene, camera);
  }
  animate();
</script>
</body>
</html>
"""
